"""Records and pages moved through a mutation pass."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from bulkflow.domain.predicate import same_value

from .enums import RecordState

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping


@dataclass(kw_only=True, slots=True)
class Record:
    """A row of the backing store: opaque id, field map, lifecycle tag.

    ``version`` is the store's optimistic-concurrency counter; stores that do not
    track versions leave it at ``1``.
    """

    id: str
    fields: dict[str, object] = field(default_factory=dict[str, object])
    version: int = 1
    state: RecordState = RecordState.PENDING

    def get(self, name: str, default: object = None) -> object:
        return self.fields.get(name, default)

    def snapshot(self) -> Record:
        """Return a deep copy that can be handed to user code without aliasing."""

        return replace(self, fields=copy.deepcopy(self.fields))

    def evolve(self, changes: Mapping[str, object]) -> Record:
        """Return a transformed copy carrying ``changes`` on top of the current fields."""

        merged = copy.deepcopy(self.fields)
        merged.update(changes)
        return replace(self, fields=merged, state=RecordState.TRANSFORMED)

    def changed_fields(self, original: Record) -> dict[str, object]:
        return {
            name: value
            for name, value in self.fields.items()
            if name not in original.fields or not same_value(original.fields[name], value)
        }

    def mark_written(self) -> None:
        self.state = RecordState.WRITTEN

    def mark_failed(self) -> None:
        self.state = RecordState.FAILED


@dataclass(frozen=True, slots=True)
class Page:
    """Ordered, bounded chunk of records fetched in one read."""

    records: tuple[Record, ...]
    size: int
    fetched: int | None = None

    def __post_init__(self) -> None:
        if not self.records:
            raise ValueError("A page must hold at least one record")
        if len(self.records) > self.size:
            raise ValueError(f"Page holds {len(self.records)} records, limit is {self.size}")

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    @property
    def first_id(self) -> str:
        return self.records[0].id

    @property
    def last_id(self) -> str:
        return self.records[-1].id

    @property
    def is_last(self) -> bool:
        """A short read means the store has nothing after it.

        ``fetched`` is the raw row count of the read when it differs from the
        kept records, e.g. after duplicates were dropped.
        """

        read = len(self.records) if self.fetched is None else self.fetched
        return read < self.size
