"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from bulkflow.adapters.http import HttpRecordStore
from bulkflow.adapters.sqlalchemy.store import SqlAlchemyRecordStore
from bulkflow.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from bulkflow.domain.bulk_update import run_bulk_update
from bulkflow.domain.ports.unit_of_work import StoreUnitOfWork

if TYPE_CHECKING:
    from collections.abc import Sequence

    from bulkflow.config import HttpStoreConfig, PipelineConfig
    from bulkflow.domain.pipeline import ChangeFunction, FieldAccess, PassSummary, PipelineReport
    from bulkflow.domain.predicate import Predicate

UnitOfWorkFactory = Callable[[], StoreUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def run_sql_bulk_update(
    *,
    predicate: Predicate,
    changes: ChangeFunction,
    config: PipelineConfig,
    access: FieldAccess | None = None,
    unique_fields: Sequence[str] = (),
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> PipelineReport:
    """Run one pass against the SQL store and record it in the pass history."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    store = SqlAlchemyRecordStore(effective_uow, unique_fields=unique_fields)

    report = run_bulk_update(
        store=store,
        predicate=predicate,
        changes=changes,
        page_size=config.page_size,
        max_reads=config.max_reads,
        max_writes=config.max_writes,
        access=access,
    )

    with effective_uow() as uow:
        uow.repositories.pass_runs.add(report.summary())
        uow.commit()
    return report


def run_http_bulk_update(
    *,
    predicate: Predicate,
    changes: ChangeFunction,
    config: PipelineConfig,
    access: FieldAccess | None = None,
    store_config: HttpStoreConfig | None = None,
) -> PipelineReport:
    """Run one pass against the remote record store."""

    store = HttpRecordStore(config=store_config) if store_config else HttpRecordStore()
    with store:
        return run_bulk_update(
            store=store,
            predicate=predicate,
            changes=changes,
            page_size=config.page_size,
            max_reads=config.max_reads,
            max_writes=config.max_writes,
            access=access,
        )


def recent_passes(
    *,
    limit: int = 10,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[PassSummary]:
    """Return the most recent recorded passes, newest first."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    with effective_uow() as uow:
        return list(uow.repositories.pass_runs.recent(limit=limit))
