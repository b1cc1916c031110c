"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RecordState(StrEnum):
    """Lifecycle tag of a record within one pass."""

    PENDING = "pending"
    TRANSFORMED = "transformed"
    WRITTEN = "written"
    FAILED = "failed"


class OperationKind(StrEnum):
    READ = "read"
    WRITE = "write"


class OutcomeStatus(StrEnum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class OutcomeCause(StrEnum):
    """Why a record did not end in plain success."""

    RECORD_TRANSFORM_ERROR = "record_transform_error"
    RECORD_WRITE_REJECTION = "record_write_rejection"
    BUDGET_EXHAUSTED = "budget_exhausted"
    REENTRANCY_REJECTED = "reentrancy_rejected"
    TRANSFORM_SKIPPED = "transform_skipped"
    PERMISSION_DENIED = "permission_denied"
    PASS_ABORTED = "pass_aborted"


class PassState(StrEnum):
    IDLE = "idle"
    ENTERING = "entering"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    WRITING = "writing"
    DRAINING = "draining"
    DONE = "done"
    ABORTED = "aborted"
