"""Port describing the backing store a pass reads from and writes to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.domain.model import Record
    from bulkflow.domain.predicate import Predicate


class StoreError(RuntimeError):
    """Base class for errors raised by record store adapters."""


class StoreUnavailableError(StoreError):
    """Raised by store adapters when the store cannot be reached or timed out."""


@dataclass(frozen=True, slots=True)
class RowResult:
    """Per-row result of a batched write."""

    record_id: str
    ok: bool
    error: str | None = None

    @classmethod
    def accepted(cls, record_id: str) -> RowResult:
        return cls(record_id=record_id, ok=True)

    @classmethod
    def rejected(cls, record_id: str, error: str) -> RowResult:
        return cls(record_id=record_id, ok=False, error=error)


@runtime_checkable
class RecordStore(Protocol):
    """Predicate-filtered paginated reads and batched writes with per-row results."""

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> Sequence[Record]:
        """Return up to ``limit`` matching records with ``id > after``, ascending by id."""
        ...

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> Sequence[str]:
        """Return the ids of every matching record with ``id > after``, ascending."""
        ...

    def write_batch(self, records: Sequence[Record]) -> Sequence[RowResult]:
        """Persist ``records`` in one write and report the result of each row."""
        ...


__all__ = ["RecordStore", "RowResult", "StoreError", "StoreUnavailableError"]
