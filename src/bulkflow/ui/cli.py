from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from bulkflow.app import recent_passes, run_http_bulk_update, run_sql_bulk_update
from bulkflow.config import ConfigurationError, configure_logging, get_pipeline_config
from bulkflow.domain.pipeline import FieldPermissions, set_fields
from bulkflow.domain.predicate import parse_predicate, parse_value

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from bulkflow.domain.pipeline import PipelineReport

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run bounded bulk updates over a record store")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pass transitions")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run one bulk update pass")
    run.add_argument(
        "--where",
        action="append",
        default=[],
        metavar="FIELD<op>VALUE",
        help="Candidate criterion, e.g. status!=Completed (repeatable; all must match)",
    )
    run.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Field assignment applied to every candidate (repeatable)",
    )
    run.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Records per read (defaults to BULKFLOW_PAGE_SIZE or 200)",
    )
    run.add_argument(
        "--max-reads",
        type=int,
        default=None,
        help="Read budget ceiling (defaults to BULKFLOW_MAX_READS)",
    )
    run.add_argument(
        "--max-writes",
        type=int,
        default=None,
        help="Write budget ceiling (defaults to BULKFLOW_MAX_WRITES)",
    )
    run.add_argument(
        "--updateable",
        action="append",
        default=None,
        metavar="FIELD",
        help="Restrict changes to these fields (repeatable)",
    )
    run.add_argument(
        "--unique",
        action="append",
        default=[],
        metavar="FIELD",
        help="Field whose values must stay unique across records (sql store only)",
    )
    run.add_argument(
        "--store",
        choices=("sql", "http"),
        default="sql",
        help="Backing store (default: %(default)s)",
    )

    history = subparsers.add_parser("history", help="List recent passes from the SQL store")
    history.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of passes to show (default: %(default)s)",
    )

    return parser.parse_args(list(argv))


def _parse_assignments(texts: Sequence[str]) -> dict[str, object]:
    values: dict[str, object] = {}
    for text in texts:
        name, separator, raw_value = text.partition("=")
        name = name.strip()
        if not separator or not name:
            raise ValueError(f"Invalid assignment: {text!r} (expected FIELD=VALUE)")
        values[name] = parse_value(raw_value.strip())
    if not values:
        raise ValueError("Nothing to change: pass at least one --set FIELD=VALUE")
    return values


def _log_report(report: PipelineReport) -> None:
    summary = report.summary()
    log.info(
        "Pass %s %s: succeeded=%s, failed=%s, skipped=%s, reads=%s/%s, writes=%s/%s",
        summary.pass_id,
        summary.state,
        summary.succeeded,
        summary.failed,
        summary.skipped,
        summary.reads_used,
        summary.reads_max,
        summary.writes_used,
        summary.writes_max,
    )
    for message in report.error_messages():
        level = logging.ERROR if message.severity == "error" else logging.WARNING
        suffix = f" ({message.count} records)" if message.count else ""
        log.log(level, "%s%s", message.message, suffix)


def _prepare_pass(args: argparse.Namespace) -> Callable[[], PipelineReport]:
    """Validate the run arguments and return the pass to start."""

    predicate = parse_predicate(args.where)
    changes = set_fields(**_parse_assignments(args.assignments))
    access = FieldPermissions.allowing(args.updateable) if args.updateable else None
    config = get_pipeline_config(
        page_size=args.page_size,
        max_reads=args.max_reads,
        max_writes=args.max_writes,
    )
    if args.store == "http":
        return partial(
            run_http_bulk_update,
            predicate=predicate,
            changes=changes,
            config=config,
            access=access,
        )
    return partial(
        run_sql_bulk_update,
        predicate=predicate,
        changes=changes,
        config=config,
        access=access,
        unique_fields=args.unique,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        start_pass = _prepare_pass(parsed_args) if parsed_args.command == "run" else None
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if start_pass is not None:
            report = start_pass()
            _log_report(report)
            report.raise_for_error()
        elif parsed_args.command == "history":
            for summary in recent_passes(limit=parsed_args.limit):
                log.info(
                    "%s %s %s [%s] succeeded=%s failed=%s skipped=%s%s",
                    summary.started_at.isoformat(timespec="seconds"),
                    summary.pass_id,
                    summary.state,
                    summary.predicate,
                    summary.succeeded,
                    summary.failed,
                    summary.skipped,
                    f" error={summary.error}" if summary.error else "",
                )
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during bulk update")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def entrypoint() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    entrypoint()
