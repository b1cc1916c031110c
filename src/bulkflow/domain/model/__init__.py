"""Domain model for bulk mutation passes."""

from __future__ import annotations

from .enums import OperationKind, OutcomeCause, OutcomeStatus, PassState, RecordState
from .record import Page, Record

__all__ = [
    "OperationKind",
    "OutcomeCause",
    "OutcomeStatus",
    "Page",
    "PassState",
    "Record",
    "RecordState",
]
