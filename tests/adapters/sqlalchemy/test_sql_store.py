from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import OperationalError

from bulkflow.adapters.sqlalchemy.store import SqlAlchemyRecordStore
from bulkflow.domain.model import Record
from bulkflow.domain.ports.store import StoreUnavailableError
from bulkflow.domain.predicate import Predicate
from tests.helpers.records import make_record, make_records

if TYPE_CHECKING:
    from collections.abc import Callable

    from bulkflow.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork


def test_select_and_write_round_trip(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    store = SqlAlchemyRecordStore(sqlite_unit_of_work)
    assert store.add_records(make_records(3)) == 3

    page = store.select_page(Predicate.where(status="Open"), after=None, limit=2)
    results = store.write_batch([record.evolve({"status": "Completed"}) for record in page])

    assert [result.ok for result in results] == [True, True]
    assert store.candidate_ids(Predicate.where(status="Open"), after=None) == ["r0003"]
    stored = store.get("r0001")
    assert stored is not None
    assert stored.version == 2


def test_rejected_rows_do_not_stop_batch(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    def requires_owner(record: Record) -> str | None:
        return None if record.get("owner") else "owner is required"

    store = SqlAlchemyRecordStore(
        sqlite_unit_of_work,
        unique_fields=("email",),
        validators=(requires_owner,),
    )
    store.add_records([make_record(1, email="a@x"), make_record(2), make_record(3)])
    first, second, third = store.select_page(Predicate(), after=None, limit=3)

    results = store.write_batch(
        [
            first.evolve({"owner": "ann"}),
            second.evolve({"owner": "bob", "email": "a@x"}),
            third.evolve({"n": 30}),
            Record(id="ghost", fields={"owner": "eve"}),
        ]
    )

    assert [result.error for result in results] == [
        None,
        "duplicate value 'a@x' for unique field 'email' (held by r0001)",
        "owner is required",
        "record ghost does not exist",
    ]
    assert store.get("r0001").get("owner") == "ann"  # type: ignore[union-attr]
    assert store.get("r0002").get("owner") is None  # type: ignore[union-attr]


def test_unique_list_value_is_rejected_per_row(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    store = SqlAlchemyRecordStore(sqlite_unit_of_work, unique_fields=("tags", "code"))
    store.add_records([make_record(1, code=True), make_record(2), make_record(3)])
    _, second, third = store.select_page(Predicate(), after=None, limit=3)

    results = store.write_batch(
        [second.evolve({"tags": {"a": 1}}), third.evolve({"tags": "x", "code": 1})]
    )

    assert [result.error for result in results] == [
        "unsupported value type dict for unique field 'tags'",
        None,
    ]


def test_stale_version_is_rejected(
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    store = SqlAlchemyRecordStore(sqlite_unit_of_work)
    store.add_records(make_records(1))
    (record,) = store.select_page(Predicate(), after=None, limit=1)
    store.write_batch([record.evolve({"status": "Review"})])

    results = store.write_batch([record.evolve({"status": "Completed"})])

    assert results[0].error == "record r0001 was modified concurrently"


def test_database_errors_map_to_store_unavailable() -> None:
    def broken_unit_of_work() -> SqlAlchemyUnitOfWork:
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    store = SqlAlchemyRecordStore(broken_unit_of_work)

    with pytest.raises(StoreUnavailableError, match="database is locked"):
        store.select_page(Predicate(), after=None, limit=1)
    with pytest.raises(StoreUnavailableError):
        store.write_batch(make_records(1))
