from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert, select

from bulkflow.adapters.sqlalchemy.filters import compile_predicate, json_path
from bulkflow.adapters.sqlalchemy.mappings import record_table
from bulkflow.domain.predicate import Criterion, Operator, Predicate, parse_criterion

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

ROWS: dict[str, dict[str, object]] = {
    "a": {"status": "Open", "n": 1, "done": False},
    "b": {"status": "Completed", "n": 5, "done": True},
    "c": {"status": "Open", "n": "7"},
    "d": {"n": 2.5, "owner": None},
    "e": {},
}


@pytest.fixture
def seeded_session(sqlite_session: Session) -> Session:
    sqlite_session.execute(
        insert(record_table),
        [{"id": key, "fields": fields, "version": 1} for key, fields in ROWS.items()],
    )
    sqlite_session.commit()
    return sqlite_session


def _sql_ids(session: Session, predicate: Predicate) -> list[str]:
    column = record_table.c["fields"]
    stmt = select(record_table.c["id"]).where(compile_predicate(column, predicate))
    return sorted(session.execute(stmt.order_by(record_table.c["id"])).scalars())


def _memory_ids(predicate: Predicate) -> list[str]:
    return sorted(key for key, fields in ROWS.items() if predicate.matches(fields))


@pytest.mark.parametrize(
    "predicate",
    [
        Predicate(),
        Predicate.where(status="Open"),
        Predicate.of(Criterion("status", Operator.NE, "Completed")),
        Predicate.of(Criterion("owner", Operator.EQ, None)),
        Predicate.of(Criterion("owner", Operator.NE, None)),
        Predicate.of(Criterion("n", Operator.GE, 2)),
        Predicate.of(Criterion("n", Operator.LT, 2)),
        Predicate.of(Criterion("done", Operator.EQ, True)),
        Predicate.of(Criterion("done", Operator.EQ, 1)),
        Predicate.of(Criterion("done", Operator.NE, 1)),
        Predicate.of(Criterion("done", Operator.IN, (1, 0))),
        Predicate.of(Criterion("n", Operator.EQ, True)),
        Predicate.of(Criterion("n", Operator.EQ, 1.0)),
        Predicate.of(Criterion("status", Operator.IN, ("Open", "Blocked"))),
        Predicate.of(Criterion("status", Operator.IN, ())),
        Predicate.where(status="Open").and_(Criterion("n", Operator.LE, 1)),
    ],
    ids=str,
)
def test_sql_filter_agrees_with_in_memory_matching(
    seeded_session: Session, predicate: Predicate
) -> None:
    assert _sql_ids(seeded_session, predicate) == _memory_ids(predicate)


def test_json_path_quotes_field_names() -> None:
    assert json_path("status") == '$."status"'
    assert json_path('we"ird') == '$."we\\"ird"'


def test_container_values_never_reach_sql() -> None:
    with pytest.raises(ValueError, match="use a scalar"):
        Criterion("tags", Operator.EQ, [1])
    with pytest.raises(ValueError, match="use a scalar"):
        parse_criterion('meta={"a": 1}')
