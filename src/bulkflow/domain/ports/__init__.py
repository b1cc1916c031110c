"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import PassRunRepository, RecordRepository, Repository
from .store import RecordStore, RowResult, StoreError, StoreUnavailableError
from .unit_of_work import StoreRepositories, StoreUnitOfWork

__all__ = [
    "PassRunRepository",
    "RecordRepository",
    "RecordStore",
    "Repository",
    "RowResult",
    "StoreError",
    "StoreRepositories",
    "StoreUnavailableError",
    "StoreUnitOfWork",
]
