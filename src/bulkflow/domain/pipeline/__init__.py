"""Bounded bulk mutation pipeline.

A pass reads candidate records page by page (``BatchFetcher``), applies a pure
transformation to each (``Transformer``), persists every page with a single
batched write (``BatchWriter``) and collects one ``Outcome`` per record into a
``PipelineReport``. ``PipelineOrchestrator`` drives the pass under a
``ResourceBudget`` and a ``RecursionGuard``.
"""

from __future__ import annotations

from .budget import BudgetUsage, ResourceBudget
from .errors import FetchError, PipelineError, WriteError
from .fetcher import DEFAULT_PAGE_SIZE, BatchFetcher
from .guard import RecursionGuard
from .orchestrator import PipelineOrchestrator
from .report import (
    PASS_ALREADY_RUNNING,
    READ_BUDGET_EXHAUSTED,
    WRITE_BUDGET_EXHAUSTED,
    ErrorSummary,
    Outcome,
    PassSummary,
    PipelineReport,
)
from .transform import (
    ChangeFunction,
    FieldAccess,
    FieldPermissions,
    SkipDecision,
    Transformer,
    set_fields,
    skip_when,
)
from .writer import BatchWriter

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "PASS_ALREADY_RUNNING",
    "READ_BUDGET_EXHAUSTED",
    "WRITE_BUDGET_EXHAUSTED",
    "BatchFetcher",
    "BatchWriter",
    "BudgetUsage",
    "ChangeFunction",
    "ErrorSummary",
    "FetchError",
    "FieldAccess",
    "FieldPermissions",
    "Outcome",
    "PassSummary",
    "PipelineError",
    "PipelineOrchestrator",
    "PipelineReport",
    "RecursionGuard",
    "ResourceBudget",
    "SkipDecision",
    "Transformer",
    "WriteError",
    "set_fields",
    "skip_when",
]
