"""Bounded, identifier-ordered page reads."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from bulkflow.domain.model import Page, RecordState
from bulkflow.domain.ports.store import StoreError

from .errors import FetchError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.domain.model import Record
    from bulkflow.domain.ports.store import RecordStore
    from bulkflow.domain.predicate import Predicate

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 200


@dataclass(slots=True)
class BatchFetcher:
    """Read matching records page by page, strictly after a cursor.

    Pagination is keyed on the record id, so records inserted behind the cursor
    while a pass runs are never revisited.
    """

    store: RecordStore
    predicate: Predicate
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")

    def next_page(self, cursor: str | None) -> Page | None:
        """Return the next page after ``cursor`` or ``None`` once the candidates run out."""

        try:
            rows = self.store.select_page(self.predicate, after=cursor, limit=self.page_size)
        except StoreError as exc:
            raise FetchError(f"Could not read page after {cursor!r}: {exc}", cursor=cursor) from exc

        records = self._normalize(rows, cursor)
        if not records:
            return None
        return Page(records=tuple(records), size=self.page_size, fetched=len(rows))

    def remaining_ids(self, cursor: str | None) -> list[str]:
        """List ids of candidates not fetched yet, without reading the records."""

        try:
            ids = self.store.candidate_ids(self.predicate, after=cursor)
        except StoreError as exc:
            raise FetchError(
                f"Could not list candidates after {cursor!r}: {exc}", cursor=cursor
            ) from exc
        return sorted({record_id for record_id in ids if cursor is None or record_id > cursor})

    def _normalize(self, rows: Sequence[Record], cursor: str | None) -> list[Record]:
        seen: set[str] = set()
        records: list[Record] = []
        for record in sorted(rows, key=lambda row: row.id):
            if cursor is not None and record.id <= cursor:
                continue
            if record.id in seen:
                continue
            seen.add(record.id)
            record.state = RecordState.PENDING
            records.append(record)

        if len(records) != len(rows) or len(records) > self.page_size:
            log.warning(
                "Store returned %s rows for a page of %s after %r; kept %s",
                len(rows),
                self.page_size,
                cursor,
                min(len(records), self.page_size),
            )
        return records[: self.page_size]
