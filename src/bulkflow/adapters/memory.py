"""Dict-backed record store for tests and embedded use."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from bulkflow.domain.model import Record, RecordState
from bulkflow.domain.ports.store import RowResult
from bulkflow.domain.predicate import is_scalar, same_value

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from bulkflow.domain.ports.store import RecordStore
    from bulkflow.domain.predicate import Predicate

log = getLogger(__name__)

type RecordValidator = Callable[[Record], str | None]


def stale_version_message(record_id: str) -> str:
    return f"record {record_id} was modified concurrently"


def missing_record_message(record_id: str) -> str:
    return f"record {record_id} does not exist"


def duplicate_value_message(field_name: str, value: object, other_id: str) -> str:
    return f"duplicate value {value!r} for unique field '{field_name}' (held by {other_id})"


def unsupported_unique_value_message(field_name: str, value: object) -> str:
    return f"unsupported value type {type(value).__name__} for unique field '{field_name}'"


@dataclass(slots=True)
class InMemoryRecordStore:
    """Record store holding copies of records in a dict.

    Writes follow the same row rules as the SQL store: the stored version must
    match the submitted one, ``unique_fields`` must hold scalars that do not
    collide with another row, and every validator must accept the row. A row
    that breaks a rule is rejected on its own; the rest of the batch is still
    written.
    """

    unique_fields: tuple[str, ...] = ()
    validators: tuple[RecordValidator, ...] = ()
    _rows: dict[str, Record] = field(default_factory=dict[str, Record], init=False, repr=False)
    reads: int = field(default=0, init=False)
    writes: int = field(default=0, init=False)

    @classmethod
    def with_records(cls, records: Iterable[Record], **kwargs: object) -> InMemoryRecordStore:
        store = cls(**kwargs)  # type: ignore[arg-type]
        for record in records:
            store.add(record)
        return store

    def add(self, record: Record) -> None:
        if record.id in self._rows:
            raise ValueError(f"Record {record.id!r} already exists")
        self._rows[record.id] = copy.deepcopy(record)

    def get(self, record_id: str) -> Record | None:
        row = self._rows.get(record_id)
        return copy.deepcopy(row) if row is not None else None

    def __len__(self) -> int:
        return len(self._rows)

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        self.reads += 1
        ids = self._matching_ids(predicate, after=after)[:limit]
        return [copy.deepcopy(self._rows[record_id]) for record_id in ids]

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        return self._matching_ids(predicate, after=after)

    def write_batch(self, records: Sequence[Record]) -> list[RowResult]:
        self.writes += 1
        results: list[RowResult] = []
        for record in records:
            error = self._check(record)
            if error is not None:
                log.debug("Rejected record %s: %s", record.id, error)
                results.append(RowResult.rejected(record.id, error))
                continue
            stored = copy.deepcopy(record)
            stored.version = record.version + 1
            stored.state = RecordState.PENDING
            self._rows[record.id] = stored
            results.append(RowResult.accepted(record.id))
        return results

    def _matching_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        return sorted(
            record_id
            for record_id, row in self._rows.items()
            if (after is None or record_id > after) and predicate.matches(row.fields)
        )

    def _check(self, record: Record) -> str | None:
        current = self._rows.get(record.id)
        if current is None:
            return missing_record_message(record.id)
        if current.version != record.version:
            return stale_version_message(record.id)
        for field_name in self.unique_fields:
            value = record.fields.get(field_name)
            if value is None:
                continue
            if not is_scalar(value):
                return unsupported_unique_value_message(field_name, value)
            for other_id, other in self._rows.items():
                if other_id != record.id and same_value(other.fields.get(field_name), value):
                    return duplicate_value_message(field_name, value, other_id)
        for validator in self.validators:
            error = validator(record)
            if error is not None:
                return error
        return None


if TYPE_CHECKING:
    _store_check: RecordStore = InMemoryRecordStore()
