"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, insert, select, update

from bulkflow.adapters.sqlalchemy.filters import compile_predicate
from bulkflow.adapters.sqlalchemy.mappings import pass_run_table, record_table
from bulkflow.domain.model import PassState, Record
from bulkflow.domain.pipeline.report import PassSummary
from bulkflow.domain.predicate import Criterion, Operator, Predicate

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy import Row
    from sqlalchemy.orm import Session

_ID = record_table.c["id"]
_FIELDS = record_table.c["fields"]
_VERSION = record_table.c["version"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _to_record(row: Row[Any]) -> Record:
    mapping = row._mapping  # noqa: SLF001
    return Record(
        id=mapping["id"],
        fields=dict(cast("Mapping[str, object]", mapping["fields"] or {})),
        version=mapping["version"],
    )


class SqlAlchemyRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: Record) -> None:
        self.session.execute(
            insert(record_table).values(
                id=entity.id,
                fields=dict(entity.fields),
                version=entity.version,
                updated_at=_utcnow(),
            )
        )

    def get(self, record_id: str) -> Record | None:
        row = self.session.execute(select(record_table).where(_ID == record_id)).one_or_none()
        return _to_record(row) if row is not None else None

    def remove(self, record_id: str) -> None:
        self.session.execute(delete(record_table).where(_ID == record_id))

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        stmt = (
            select(record_table)
            .where(compile_predicate(_FIELDS, predicate))
            .order_by(_ID)
            .limit(limit)
        )
        if after is not None:
            stmt = stmt.where(_ID > after)
        return [_to_record(row) for row in self.session.execute(stmt)]

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        stmt = select(_ID).where(compile_predicate(_FIELDS, predicate)).order_by(_ID)
        if after is not None:
            stmt = stmt.where(_ID > after)
        return list(self.session.execute(stmt).scalars())

    def update(self, record: Record) -> bool:
        stmt = (
            update(record_table)
            .where(_ID == record.id)
            .where(_VERSION == record.version)
            .values(fields=dict(record.fields), version=_VERSION + 1, updated_at=_utcnow())
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined]

    def find_conflict(self, field: str, value: object, *, exclude_id: str) -> str | None:
        if value is None:
            return None
        clause = compile_predicate(_FIELDS, Predicate.of(Criterion(field, Operator.EQ, value)))
        stmt = select(_ID).where(clause).where(_ID != exclude_id).order_by(_ID).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def count(self, predicate: Predicate | None = None) -> int:
        rows = self.candidate_ids(predicate or Predicate(), after=None)
        return len(rows)


class SqlAlchemyPassRunRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: PassSummary) -> None:
        self.session.execute(
            insert(pass_run_table).values(
                pass_id=entity.pass_id,
                state=str(entity.state),
                predicate=entity.predicate,
                started_at=entity.started_at,
                finished_at=entity.finished_at,
                succeeded=entity.succeeded,
                failed=entity.failed,
                skipped=entity.skipped,
                reads_used=entity.reads_used,
                reads_max=entity.reads_max,
                writes_used=entity.writes_used,
                writes_max=entity.writes_max,
                error=entity.error,
            )
        )

    def recent(self, *, limit: int) -> list[PassSummary]:
        stmt = (
            select(pass_run_table)
            .order_by(pass_run_table.c.started_at.desc(), pass_run_table.c.pass_id)
            .limit(limit)
        )
        summaries: list[PassSummary] = []
        for row in self.session.execute(stmt):
            mapping = row._mapping  # noqa: SLF001
            summaries.append(
                PassSummary(
                    pass_id=mapping["pass_id"],
                    state=PassState(mapping["state"]),
                    predicate=mapping["predicate"],
                    started_at=mapping["started_at"],
                    finished_at=mapping["finished_at"],
                    succeeded=mapping["succeeded"],
                    failed=mapping["failed"],
                    skipped=mapping["skipped"],
                    reads_used=mapping["reads_used"],
                    reads_max=mapping["reads_max"],
                    writes_used=mapping["writes_used"],
                    writes_max=mapping["writes_max"],
                    error=mapping["error"],
                )
            )
        return summaries


if TYPE_CHECKING:
    from bulkflow.domain.ports.persistence import PassRunRepository, RecordRepository

    _session_stub = cast("Session", object())
    _record_repo: RecordRepository = SqlAlchemyRecordRepository(_session_stub)
    _pass_run_repo: PassRunRepository = SqlAlchemyPassRunRepository(_session_stub)
