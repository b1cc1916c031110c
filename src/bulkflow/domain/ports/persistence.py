"""Ports for persisting records and pass history."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.domain.model import Record
    from bulkflow.domain.pipeline.report import PassSummary
    from bulkflow.domain.predicate import Predicate


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class RecordRepository(Repository["Record"], Protocol):
    """Persistence contract for records."""

    def get(self, record_id: str) -> Record | None: ...

    def select_page(
        self,
        predicate: Predicate,
        *,
        after: str | None,
        limit: int,
    ) -> Sequence[Record]: ...

    def candidate_ids(self, predicate: Predicate, *, after: str | None) -> Sequence[str]: ...

    def update(self, record: Record) -> bool:
        """Store ``record`` if its version still matches; return whether a row changed."""
        ...

    def find_conflict(self, field: str, value: object, *, exclude_id: str) -> str | None:
        """Return the id of another record already holding ``value`` in ``field``."""
        ...


@runtime_checkable
class PassRunRepository(Repository["PassSummary"], Protocol):
    """Persistence contract for pass history."""

    def recent(self, *, limit: int) -> Sequence[PassSummary]: ...
