from __future__ import annotations

import pytest

from bulkflow.domain.model import OutcomeCause, OutcomeStatus, PassState
from bulkflow.domain.pipeline import (
    BudgetUsage,
    ErrorSummary,
    FetchError,
    Outcome,
    PipelineReport,
)


def _report() -> PipelineReport:
    report = PipelineReport(predicate="status!=\"Completed\"")
    report.extend(
        [
            Outcome.success("a"),
            Outcome.failed("b", "duplicate value", cause=OutcomeCause.RECORD_WRITE_REJECTION),
            Outcome.failed("c", "duplicate value", cause=OutcomeCause.RECORD_WRITE_REJECTION),
            Outcome.failed("d", "KeyError: 'x'", cause=OutcomeCause.RECORD_TRANSFORM_ERROR),
            Outcome.skipped("e", "no changes", cause=OutcomeCause.TRANSFORM_SKIPPED),
        ]
    )
    return report


def test_report_is_append_only() -> None:
    report = PipelineReport()
    report.add(Outcome.success("a"))

    with pytest.raises(ValueError, match="already has an outcome"):
        report.add(Outcome.skipped("a", "again", cause=OutcomeCause.TRANSFORM_SKIPPED))


def test_accessors_and_counts() -> None:
    report = _report()

    assert len(report) == 5
    assert "a" in report
    assert [outcome.record_id for outcome in report.succeeded] == ["a"]
    assert [outcome.record_id for outcome in report.failed] == ["b", "c", "d"]
    assert report.counts() == {
        OutcomeStatus.SUCCESS: 1,
        OutcomeStatus.FAILED: 3,
        OutcomeStatus.SKIPPED: 1,
    }
    assert report.outcome_for("e") == Outcome.skipped(
        "e", "no changes", cause=OutcomeCause.TRANSFORM_SKIPPED
    )
    assert report.outcome_for("zzz") is None


def test_error_messages_are_unique_and_ranked() -> None:
    report = _report()
    report.error = FetchError("store down")

    assert report.error_messages() == [
        ErrorSummary(severity="error", message="store down", count=0),
        ErrorSummary(severity="error", message="duplicate value", count=2),
        ErrorSummary(severity="error", message="KeyError: 'x'", count=1),
        ErrorSummary(severity="warning", message="no changes", count=1),
    ]


def test_raise_for_error() -> None:
    report = PipelineReport()
    report.raise_for_error()

    report.error = FetchError("store down")
    with pytest.raises(FetchError, match="store down"):
        report.raise_for_error()


def test_ok_requires_done_without_failures() -> None:
    report = PipelineReport(state=PassState.DONE)
    report.add(Outcome.success("a"))
    assert report.ok

    report.add(Outcome.failed("b", "nope", cause=OutcomeCause.RECORD_WRITE_REJECTION))
    assert not report.ok
    assert not PipelineReport(state=PassState.ABORTED).ok


def test_summary_flattens_usage() -> None:
    report = _report()
    report.usage = BudgetUsage(reads_used=2, reads_max=5, writes_used=1, writes_max=3)

    summary = report.summary()

    assert summary.pass_id == report.pass_id
    assert summary.predicate == 'status!="Completed"'
    assert (summary.succeeded, summary.failed, summary.skipped) == (1, 3, 1)
    assert (summary.reads_used, summary.writes_max) == (2, 3)
    assert summary.error is None
