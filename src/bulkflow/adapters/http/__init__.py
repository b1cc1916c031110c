"""HTTP record store adapter."""

from __future__ import annotations

from .client import HttpRecordStore, RecordStoreAPIError, serialize_predicate
from .schema import RecordPayload, RowResultPayload

__all__ = [
    "HttpRecordStore",
    "RecordPayload",
    "RecordStoreAPIError",
    "RowResultPayload",
    "serialize_predicate",
]
