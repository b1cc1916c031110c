"""Application services for running bulk update passes."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from bulkflow.domain.pipeline import (
    DEFAULT_PAGE_SIZE,
    BatchFetcher,
    BatchWriter,
    PipelineOrchestrator,
    RecursionGuard,
    ResourceBudget,
    Transformer,
)

if TYPE_CHECKING:
    from concurrent.futures import Future
    from types import TracebackType

    from bulkflow.domain.pipeline import ChangeFunction, FieldAccess, PipelineReport
    from bulkflow.domain.ports.store import RecordStore
    from bulkflow.domain.predicate import Predicate

log = getLogger(__name__)


def build_orchestrator(
    *,
    store: RecordStore,
    predicate: Predicate,
    changes: ChangeFunction,
    page_size: int = DEFAULT_PAGE_SIZE,
    guard: RecursionGuard | None = None,
    access: FieldAccess | None = None,
) -> PipelineOrchestrator:
    """Wire fetcher, transformer and writer for ``store``."""

    return PipelineOrchestrator(
        fetcher=BatchFetcher(store=store, predicate=predicate, page_size=page_size),
        transformer=Transformer(changes=changes, access=access),
        writer=BatchWriter(store=store),
        guard=guard or RecursionGuard(),
    )


def run_bulk_update(
    *,
    store: RecordStore,
    predicate: Predicate,
    changes: ChangeFunction,
    max_reads: int,
    max_writes: int,
    page_size: int = DEFAULT_PAGE_SIZE,
    guard: RecursionGuard | None = None,
    access: FieldAccess | None = None,
) -> PipelineReport:
    """Run one pass over the records matching ``predicate`` and return its report."""

    orchestrator = build_orchestrator(
        store=store,
        predicate=predicate,
        changes=changes,
        page_size=page_size,
        guard=guard,
        access=access,
    )
    return orchestrator.run(ResourceBudget(reads_max=max_reads, writes_max=max_writes))


class PassQueue:
    """Run passes in the background, one at a time, in submission order.

    A single worker keeps passes from overlapping, so budget accounting and the
    guard's single-threaded contract hold for everything run through the queue.
    """

    def __init__(self, *, name: str = "bulkflow-pass") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def enqueue(
        self,
        orchestrator: PipelineOrchestrator,
        budget: ResourceBudget,
    ) -> Future[PipelineReport]:
        log.debug("Queueing pass over %s", orchestrator.fetcher.predicate)
        return self._executor.submit(orchestrator.run, budget)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> PassQueue:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.shutdown()
        return False
