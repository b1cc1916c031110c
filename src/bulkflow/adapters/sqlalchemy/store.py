"""Record store over the SQLAlchemy unit of work."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from bulkflow.adapters.memory import (
    duplicate_value_message,
    missing_record_message,
    stale_version_message,
    unsupported_unique_value_message,
)
from bulkflow.domain.predicate import is_scalar
from bulkflow.domain.ports.store import RowResult, StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from bulkflow.adapters.memory import RecordValidator
    from bulkflow.domain.model import Record
    from bulkflow.domain.ports.persistence import RecordRepository
    from bulkflow.domain.ports.store import RecordStore
    from bulkflow.domain.ports.unit_of_work import StoreUnitOfWork
    from bulkflow.domain.predicate import Predicate

log = getLogger(__name__)


@contextmanager
def _unavailable_on_database_errors() -> Iterator[None]:
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        raise StoreUnavailableError(f"Database unavailable: {exc}") from exc


class SqlAlchemyRecordStore:
    """Record store that runs every read and every batch in its own unit of work.

    Rows in a batch are checked in order (existence, version, unique fields,
    validators) and written with a version guard. A rejected row does not stop
    the batch; a constraint violation at commit rejects the whole batch.
    """

    def __init__(
        self,
        unit_of_work_factory: Callable[[], StoreUnitOfWork],
        *,
        unique_fields: Sequence[str] = (),
        validators: Sequence[RecordValidator] = (),
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self.unique_fields = tuple(unique_fields)
        self.validators = tuple(validators)

    def add_records(self, records: Iterable[Record]) -> int:
        count = 0
        with _unavailable_on_database_errors(), self._unit_of_work_factory() as uow:
            for record in records:
                uow.repositories.records.add(record)
                count += 1
            uow.commit()
        return count

    def get(self, record_id: str) -> Record | None:
        with _unavailable_on_database_errors(), self._unit_of_work_factory() as uow:
            return uow.repositories.records.get(record_id)

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        with _unavailable_on_database_errors(), self._unit_of_work_factory() as uow:
            return list(uow.repositories.records.select_page(predicate, after=after, limit=limit))

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        with _unavailable_on_database_errors(), self._unit_of_work_factory() as uow:
            return list(uow.repositories.records.candidate_ids(predicate, after=after))

    def write_batch(self, records: Sequence[Record]) -> list[RowResult]:
        with _unavailable_on_database_errors(), self._unit_of_work_factory() as uow:
            repository = uow.repositories.records
            results = [self._write_row(repository, record) for record in records]
            try:
                uow.commit()
            except IntegrityError as exc:
                uow.rollback()
                log.warning("Batch of %s records rejected at commit: %s", len(records), exc.orig)
                reason = f"constraint violation: {exc.orig}"
                return [RowResult.rejected(record.id, reason) for record in records]
        return results

    def _write_row(self, repository: RecordRepository, record: Record) -> RowResult:
        error = self._check(repository, record)
        if error is None and not repository.update(record):
            error = stale_version_message(record.id)
        if error is not None:
            log.debug("Rejected record %s: %s", record.id, error)
            return RowResult.rejected(record.id, error)
        return RowResult.accepted(record.id)

    def _check(self, repository: RecordRepository, record: Record) -> str | None:
        current = repository.get(record.id)
        if current is None:
            return missing_record_message(record.id)
        if current.version != record.version:
            return stale_version_message(record.id)
        for field_name in self.unique_fields:
            value = record.fields.get(field_name)
            if not is_scalar(value):
                return unsupported_unique_value_message(field_name, value)
            other_id = repository.find_conflict(field_name, value, exclude_id=record.id)
            if other_id is not None:
                return duplicate_value_message(field_name, value, other_id)
        for validator in self.validators:
            error = validator(record)
            if error is not None:
                return error
        return None


if TYPE_CHECKING:
    _store_check: RecordStore = SqlAlchemyRecordStore(lambda: None)  # type: ignore[arg-type,return-value]
