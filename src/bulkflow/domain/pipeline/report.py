"""Per-record outcomes and the report returned at the end of a pass."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Literal
from uuid import uuid4

from bulkflow.domain.model import OutcomeCause, OutcomeStatus, PassState

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .budget import BudgetUsage
    from .errors import PipelineError

PASS_ALREADY_RUNNING = "pass already running"
READ_BUDGET_EXHAUSTED = "read budget exhausted"
WRITE_BUDGET_EXHAUSTED = "write budget exhausted"

Severity = Literal["error", "warning"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class Outcome:
    """Result for one record: success, failure with a reason, or a skip."""

    record_id: str
    status: OutcomeStatus
    cause: OutcomeCause | None = None
    reason: str | None = None

    @classmethod
    def success(cls, record_id: str) -> Outcome:
        return cls(record_id=record_id, status=OutcomeStatus.SUCCESS)

    @classmethod
    def failed(cls, record_id: str, reason: str, *, cause: OutcomeCause) -> Outcome:
        return cls(record_id=record_id, status=OutcomeStatus.FAILED, cause=cause, reason=reason)

    @classmethod
    def skipped(cls, record_id: str, reason: str, *, cause: OutcomeCause) -> Outcome:
        return cls(record_id=record_id, status=OutcomeStatus.SKIPPED, cause=cause, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class ErrorSummary:
    """A distinct problem message and how many records it affected."""

    severity: Severity
    message: str
    count: int


@dataclass(frozen=True, slots=True)
class PassSummary:
    """Flat, persistable view of a finished pass."""

    pass_id: str
    state: PassState
    predicate: str
    started_at: datetime
    finished_at: datetime | None
    succeeded: int
    failed: int
    skipped: int
    reads_used: int
    reads_max: int
    writes_used: int
    writes_max: int
    error: str | None = None


@dataclass(slots=True)
class PipelineReport:
    """Append-only map from record id to outcome, plus pass bookkeeping."""

    predicate: str = ""
    pass_id: str = field(default_factory=lambda: uuid4().hex)
    state: PassState = PassState.IDLE
    started_at: datetime = field(default_factory=_utcnow)
    finished_at: datetime | None = None
    usage: BudgetUsage | None = None
    error: PipelineError | None = None
    _outcomes: dict[str, Outcome] = field(
        default_factory=dict[str, Outcome], init=False, repr=False
    )

    def add(self, outcome: Outcome) -> None:
        if outcome.record_id in self._outcomes:
            raise ValueError(f"Record {outcome.record_id!r} already has an outcome in this pass")
        self._outcomes[outcome.record_id] = outcome

    def extend(self, outcomes: Iterable[Outcome]) -> None:
        for outcome in outcomes:
            self.add(outcome)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._outcomes

    def __len__(self) -> int:
        return len(self._outcomes)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self._outcomes.values())

    def outcome_for(self, record_id: str) -> Outcome | None:
        return self._outcomes.get(record_id)

    @property
    def outcomes(self) -> dict[str, Outcome]:
        return dict(self._outcomes)

    def with_status(self, status: OutcomeStatus) -> list[Outcome]:
        return [outcome for outcome in self._outcomes.values() if outcome.status is status]

    @property
    def succeeded(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.SUCCESS)

    @property
    def failed(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[Outcome]:
        return self.with_status(OutcomeStatus.SKIPPED)

    def counts(self) -> dict[OutcomeStatus, int]:
        counter = Counter(outcome.status for outcome in self._outcomes.values())
        return {status: counter.get(status, 0) for status in OutcomeStatus}

    @property
    def aborted(self) -> bool:
        return self.state is PassState.ABORTED

    @property
    def ok(self) -> bool:
        """True when the pass completed and every record succeeded or was skipped."""

        return self.state is PassState.DONE and not self.failed

    def raise_for_error(self) -> None:
        """Re-raise the pass-fatal error, if the pass hit one."""

        if self.error is not None:
            raise self.error

    def error_messages(self) -> list[ErrorSummary]:
        """Collapse failures and skips into distinct, countable messages.

        Failures come first, most frequent first; the pass-fatal error, if any,
        leads the list.
        """

        failures: Counter[str] = Counter()
        warnings: Counter[str] = Counter()
        for outcome in self._outcomes.values():
            if outcome.status is OutcomeStatus.SUCCESS or outcome.reason is None:
                continue
            target = failures if outcome.status is OutcomeStatus.FAILED else warnings
            target[outcome.reason] += 1

        summaries: list[ErrorSummary] = []
        if self.error is not None:
            summaries.append(ErrorSummary(severity="error", message=str(self.error), count=0))
        summaries.extend(
            ErrorSummary(severity="error", message=message, count=count)
            for message, count in failures.most_common()
        )
        summaries.extend(
            ErrorSummary(severity="warning", message=message, count=count)
            for message, count in warnings.most_common()
        )
        return summaries

    def summary(self) -> PassSummary:
        counts = self.counts()
        usage = self.usage
        return PassSummary(
            pass_id=self.pass_id,
            state=self.state,
            predicate=self.predicate,
            started_at=self.started_at,
            finished_at=self.finished_at,
            succeeded=counts[OutcomeStatus.SUCCESS],
            failed=counts[OutcomeStatus.FAILED],
            skipped=counts[OutcomeStatus.SKIPPED],
            reads_used=usage.reads_used if usage else 0,
            reads_max=usage.reads_max if usage else 0,
            writes_used=usage.writes_used if usage else 0,
            writes_max=usage.writes_max if usage else 0,
            error=str(self.error) if self.error is not None else None,
        )
