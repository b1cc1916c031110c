"""Pass orchestration: fetch, transform and write page by page under a budget."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from bulkflow.domain.model import OperationKind, OutcomeCause, PassState

from .errors import FetchError, WriteError
from .guard import RecursionGuard
from .report import (
    PASS_ALREADY_RUNNING,
    READ_BUDGET_EXHAUSTED,
    WRITE_BUDGET_EXHAUSTED,
    Outcome,
    PipelineReport,
)
from .transform import SkipDecision

if TYPE_CHECKING:
    from bulkflow.domain.model import Page, Record

    from .budget import ResourceBudget
    from .fetcher import BatchFetcher
    from .transform import Transformer
    from .writer import BatchWriter

log = getLogger(__name__)

TRANSITIONS: Final[dict[PassState, frozenset[PassState]]] = {
    PassState.IDLE: frozenset({PassState.ENTERING}),
    PassState.ENTERING: frozenset({PassState.FETCHING, PassState.ABORTED}),
    PassState.FETCHING: frozenset(
        {PassState.TRANSFORMING, PassState.DRAINING, PassState.ABORTED}
    ),
    PassState.TRANSFORMING: frozenset({PassState.WRITING}),
    PassState.WRITING: frozenset({PassState.FETCHING, PassState.DRAINING, PassState.ABORTED}),
    PassState.DRAINING: frozenset({PassState.DONE}),
    PassState.DONE: frozenset(),
    PassState.ABORTED: frozenset(),
}


@dataclass(slots=True)
class PipelineOrchestrator:
    """Compose fetcher, transformer and writer into one bounded mutation pass.

    ``run`` walks the states Idle → Entering → Fetching → Transforming → Writing,
    loops back to Fetching per page, and ends in Done (after Draining) or
    Aborted. Pages are processed strictly one after another. Every run calls
    ``guard.exit`` exactly once, rejected runs included.
    """

    fetcher: BatchFetcher
    transformer: Transformer
    writer: BatchWriter
    guard: RecursionGuard = field(default_factory=RecursionGuard)

    def run(self, budget: ResourceBudget) -> PipelineReport:
        report = PipelineReport(predicate=str(self.fetcher.predicate))
        _move(report, PassState.ENTERING)

        entered = self.guard.enter()
        try:
            if entered:
                self._run_pass(report, budget)
            else:
                self._reject(report)
        finally:
            self.guard.exit()

        _finish(report, budget)
        return report

    def _run_pass(self, report: PipelineReport, budget: ResourceBudget) -> None:
        log.info(
            "Starting pass %s: predicate=%s, page_size=%s, max_reads=%s, max_writes=%s",
            report.pass_id,
            report.predicate,
            self.fetcher.page_size,
            budget.reads_max,
            budget.writes_max,
        )
        self._process_pages(report, budget)
        if report.state is PassState.DRAINING:
            _move(report, PassState.DONE)

    def _reject(self, report: PipelineReport) -> None:
        log.warning("Pass %s rejected: %s", report.pass_id, PASS_ALREADY_RUNNING)
        _move(report, PassState.ABORTED)
        self._skip_remaining(
            report,
            after=None,
            cause=OutcomeCause.REENTRANCY_REJECTED,
            reason=PASS_ALREADY_RUNNING,
        )

    def _process_pages(self, report: PipelineReport, budget: ResourceBudget) -> None:
        cursor: str | None = None
        while True:
            if not budget.try_consume(OperationKind.READ):
                log.warning(
                    "Pass %s: read budget exhausted after %s reads",
                    report.pass_id,
                    budget.reads_used,
                )
                _move(report, PassState.ABORTED)
                self._skip_remaining(
                    report,
                    after=cursor,
                    cause=OutcomeCause.BUDGET_EXHAUSTED,
                    reason=READ_BUDGET_EXHAUSTED,
                )
                return

            _move(report, PassState.FETCHING)
            try:
                page = self.fetcher.next_page(cursor)
            except FetchError as exc:
                self._abort(report, exc, held=(), after=cursor)
                return
            if page is None:
                _move(report, PassState.DRAINING)
                return

            _move(report, PassState.TRANSFORMING)
            batch = self._transform_page(page, report)

            _move(report, PassState.WRITING)
            if batch and not self._write_batch(batch, page, report, budget):
                return

            cursor = page.last_id
            if page.is_last:
                _move(report, PassState.DRAINING)
                return

    def _transform_page(self, page: Page, report: PipelineReport) -> list[Record]:
        batch: list[Record] = []
        for record in page:
            try:
                result = self.transformer.apply(record)
            except Exception as exc:  # noqa: BLE001
                log.warning("Transform failed for record %s: %s", record.id, exc)
                record.mark_failed()
                report.add(
                    Outcome.failed(
                        record.id,
                        f"{type(exc).__name__}: {exc}",
                        cause=OutcomeCause.RECORD_TRANSFORM_ERROR,
                    )
                )
                continue
            if isinstance(result, SkipDecision):
                report.add(Outcome.skipped(record.id, result.reason, cause=result.cause))
                continue
            batch.append(result)
        return batch

    def _write_batch(
        self,
        batch: list[Record],
        page: Page,
        report: PipelineReport,
        budget: ResourceBudget,
    ) -> bool:
        """Write one page's batch; return ``False`` when the pass must stop."""

        if not budget.try_consume(OperationKind.WRITE):
            log.warning(
                "Pass %s: write budget exhausted after %s writes; skipping %s records",
                report.pass_id,
                budget.writes_used,
                len(batch),
            )
            report.extend(
                Outcome.skipped(
                    record.id, WRITE_BUDGET_EXHAUSTED, cause=OutcomeCause.BUDGET_EXHAUSTED
                )
                for record in batch
            )
            _move(report, PassState.DRAINING)
            self._skip_remaining(
                report,
                after=page.last_id,
                cause=OutcomeCause.BUDGET_EXHAUSTED,
                reason=WRITE_BUDGET_EXHAUSTED,
            )
            return False

        try:
            outcomes = self.writer.write(batch)
        except WriteError as exc:
            self._abort(report, exc, held=batch, after=page.last_id)
            return False
        report.extend(outcomes)
        return True

    def _abort(
        self,
        report: PipelineReport,
        error: FetchError | WriteError,
        *,
        held: list[Record] | tuple[()],
        after: str | None,
    ) -> None:
        log.error("Pass %s aborted: %s", report.pass_id, error)
        report.error = error
        _move(report, PassState.ABORTED)
        reason = f"pass aborted: {error}"
        report.extend(
            Outcome.skipped(record.id, reason, cause=OutcomeCause.PASS_ABORTED) for record in held
        )
        self._skip_remaining(report, after=after, cause=OutcomeCause.PASS_ABORTED, reason=reason)

    def _skip_remaining(
        self,
        report: PipelineReport,
        *,
        after: str | None,
        cause: OutcomeCause,
        reason: str,
    ) -> None:
        try:
            remaining = self.fetcher.remaining_ids(after)
        except FetchError as exc:
            log.error(
                "Pass %s: could not list unprocessed candidates: %s", report.pass_id, exc
            )
            if report.error is None:
                report.error = exc
            return
        report.extend(
            Outcome.skipped(record_id, reason, cause=cause)
            for record_id in remaining
            if record_id not in report
        )


def _move(report: PipelineReport, target: PassState) -> None:
    if target not in TRANSITIONS[report.state]:
        raise RuntimeError(f"Illegal pass transition {report.state} -> {target}")
    log.debug("Pass %s: %s -> %s", report.pass_id, report.state, target)
    report.state = target


def _finish(report: PipelineReport, budget: ResourceBudget) -> None:
    report.usage = budget.usage()
    report.finished_at = datetime.now(UTC)
    counts = report.summary()
    log.info(
        "Finished pass %s: state=%s, succeeded=%s, failed=%s, skipped=%s, reads=%s/%s, "
        "writes=%s/%s",
        report.pass_id,
        report.state,
        counts.succeeded,
        counts.failed,
        counts.skipped,
        budget.reads_used,
        budget.reads_max,
        budget.writes_used,
        budget.writes_max,
    )
