"""Pass-fatal errors.

Only these escalate to the caller. Per-record faults are reported as
``Outcome`` values on the ``PipelineReport`` instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class PipelineError(RuntimeError):
    """Base class for errors that abort a whole pass."""


class FetchError(PipelineError):
    """Raised when a page cannot be read because the store is unreachable."""

    def __init__(self, message: str, *, cursor: str | None = None) -> None:
        super().__init__(message)
        self.cursor = cursor


class WriteError(PipelineError):
    """Raised when a batch cannot be written because the store is unreachable."""

    def __init__(self, message: str, *, record_ids: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.record_ids = tuple(record_ids)
