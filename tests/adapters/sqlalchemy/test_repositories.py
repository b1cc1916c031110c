from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from bulkflow.adapters.sqlalchemy.repositories import (
    SqlAlchemyPassRunRepository,
    SqlAlchemyRecordRepository,
)
from bulkflow.domain.model import PassState
from bulkflow.domain.pipeline import PassSummary
from bulkflow.domain.predicate import Predicate
from tests.helpers.records import make_record, make_records

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


def _summary(pass_id: str, started_at: datetime, **overrides: object) -> PassSummary:
    values: dict[str, object] = {
        "pass_id": pass_id,
        "state": PassState.DONE,
        "predicate": "<all>",
        "started_at": started_at,
        "finished_at": started_at + timedelta(seconds=3),
        "succeeded": 4,
        "failed": 1,
        "skipped": 0,
        "reads_used": 1,
        "reads_max": 5,
        "writes_used": 1,
        "writes_max": 5,
    }
    values.update(overrides)
    return PassSummary(**values)  # type: ignore[arg-type]


def test_record_round_trip(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    repository.add(make_record(1, tags=["a", "b"]))
    sqlite_session.commit()

    stored = repository.get("r0001")

    assert stored is not None
    assert stored.fields == {"status": "Open", "n": 1, "tags": ["a", "b"]}
    assert stored.version == 1
    assert repository.get("missing") is None


def test_select_page_and_candidate_ids(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    for record in reversed(make_records(6)):
        repository.add(record)
    repository.add(make_record(7, status="Completed"))

    page = repository.select_page(Predicate.where(status="Open"), after="r0002", limit=3)

    assert [record.id for record in page] == ["r0003", "r0004", "r0005"]
    assert repository.candidate_ids(Predicate.where(status="Open"), after="r0004") == [
        "r0005",
        "r0006",
    ]
    assert repository.count() == 7


def test_update_is_guarded_by_version(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    repository.add(make_record(1))
    original = repository.get("r0001")
    assert original is not None

    assert repository.update(original.evolve({"status": "Completed"}))
    assert not repository.update(original.evolve({"status": "Review"}))

    stored = repository.get("r0001")
    assert stored is not None
    assert stored.version == 2
    assert stored.fields["status"] == "Completed"


def test_find_conflict(sqlite_session: Session) -> None:
    repository = SqlAlchemyRecordRepository(sqlite_session)
    repository.add(make_record(1, email="a@x"))
    repository.add(make_record(2, email="b@x"))

    assert repository.find_conflict("email", "a@x", exclude_id="r0002") == "r0001"
    assert repository.find_conflict("email", "a@x", exclude_id="r0001") is None
    assert repository.find_conflict("email", None, exclude_id="r0001") is None


def test_pass_runs_recent_newest_first(sqlite_session: Session) -> None:
    repository = SqlAlchemyPassRunRepository(sqlite_session)
    now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
    repository.add(_summary("a" * 32, now - timedelta(hours=2)))
    repository.add(
        _summary("b" * 32, now, state=PassState.ABORTED, error="Could not read page after None")
    )
    repository.add(_summary("c" * 32, now - timedelta(hours=1)))
    sqlite_session.commit()

    recent = repository.recent(limit=2)

    assert [summary.pass_id for summary in recent] == ["b" * 32, "c" * 32]
    assert recent[0].state is PassState.ABORTED
    assert recent[0].error == "Could not read page after None"
    assert recent[0].started_at == now
