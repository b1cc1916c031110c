"""Reusable records, stores and guards for pipeline tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bulkflow.adapters.memory import InMemoryRecordStore
from bulkflow.domain.model import Record
from bulkflow.domain.pipeline import RecursionGuard
from bulkflow.domain.ports.store import RowResult, StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.domain.predicate import Predicate


def record_id(index: int) -> str:
    return f"r{index:04d}"


def make_record(index: int, **fields: object) -> Record:
    return Record(id=record_id(index), fields={"status": "Open", "n": index, **fields})


def make_records(count: int, *, start: int = 1, **fields: object) -> list[Record]:
    return [make_record(index, **fields) for index in range(start, start + count)]


def make_store(count: int, **kwargs: object) -> InMemoryRecordStore:
    return InMemoryRecordStore.with_records(make_records(count), **kwargs)


class CountingGuard(RecursionGuard):
    """Guard that records how often it was entered and released."""

    __slots__ = ("enters", "exits")

    def __init__(self, name: str = "pass") -> None:
        super().__init__(name)
        self.enters = 0
        self.exits = 0

    def enter(self) -> bool:
        self.enters += 1
        return super().enter()

    def exit(self) -> None:
        self.exits += 1
        super().exit()


@dataclass(slots=True)
class FlakyStore:
    """Wrap a store and make selected calls fail as if the store were down."""

    inner: InMemoryRecordStore
    fail_select_on_call: int | None = None
    fail_write_on_call: int | None = None
    fail_candidate_ids: bool = False
    select_calls: int = field(default=0, init=False)
    write_calls: int = field(default=0, init=False)

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        self.select_calls += 1
        if self.select_calls == self.fail_select_on_call:
            raise StoreUnavailableError("connection refused")
        return self.inner.select_page(predicate, after=after, limit=limit)

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        if self.fail_candidate_ids:
            raise StoreUnavailableError("connection refused")
        return self.inner.candidate_ids(predicate, after=after)

    def write_batch(self, records: Sequence[Record]) -> list[RowResult]:
        self.write_calls += 1
        if self.write_calls == self.fail_write_on_call:
            raise StoreUnavailableError("write timed out")
        return self.inner.write_batch(records)


@dataclass(slots=True)
class ScriptedStore:
    """Store returning canned pages and row results, recording every call."""

    pages: list[list[Record]] = field(default_factory=list[list[Record]])
    ids: list[str] = field(default_factory=list[str])
    results: list[RowResult] | None = None
    select_calls: list[tuple[str | None, int]] = field(
        default_factory=list[tuple[str | None, int]]
    )
    written: list[list[Record]] = field(default_factory=list[list[Record]])

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> list[Record]:
        _ = predicate
        self.select_calls.append((after, limit))
        return self.pages.pop(0) if self.pages else []

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> list[str]:
        _ = predicate
        return [value for value in self.ids if after is None or value > after]

    def write_batch(self, records: Sequence[Record]) -> list[RowResult]:
        self.written.append(list(records))
        if self.results is not None:
            return list(self.results)
        return [RowResult.accepted(record.id) for record in records]
