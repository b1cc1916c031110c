"""SQLAlchemy adapter package for bulkflow."""

from __future__ import annotations

from .filters import compile_criterion, compile_predicate
from .mappings import metadata, pass_run_table, record_table
from .repositories import SqlAlchemyPassRunRepository, SqlAlchemyRecordRepository
from .store import SqlAlchemyRecordStore
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyPassRunRepository",
    "SqlAlchemyRecordRepository",
    "SqlAlchemyRecordStore",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "compile_criterion",
    "compile_predicate",
    "configured_engine",
    "is_started",
    "metadata",
    "pass_run_table",
    "record_table",
    "shutdown",
    "startup",
]
