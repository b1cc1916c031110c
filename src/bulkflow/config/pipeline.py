"""Pass sizing and budget configuration."""

from __future__ import annotations

from dataclasses import dataclass

from .env import non_negative_int, optional_env_var, positive_int, require_env_vars

DEFAULT_PAGE_SIZE = 200


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Caller-supplied sizing for a single pass."""

    max_reads: int
    max_writes: int
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise ValueError(f"page_size must be positive, got {self.page_size}")
        if self.max_reads < 0 or self.max_writes < 0:
            raise ValueError("Budget ceilings must not be negative")


def get_pipeline_config(
    *,
    page_size: int | None = None,
    max_reads: int | None = None,
    max_writes: int | None = None,
) -> PipelineConfig:
    """Build a ``PipelineConfig`` from explicit values, falling back to the environment."""

    missing = [
        name
        for name, value in (
            ("BULKFLOW_MAX_READS", max_reads),
            ("BULKFLOW_MAX_WRITES", max_writes),
        )
        if value is None
    ]
    values = require_env_vars(missing) if missing else {}

    if max_reads is None:
        max_reads = non_negative_int("BULKFLOW_MAX_READS", values["BULKFLOW_MAX_READS"])
    if max_writes is None:
        max_writes = non_negative_int("BULKFLOW_MAX_WRITES", values["BULKFLOW_MAX_WRITES"])
    if page_size is None:
        raw_page_size = optional_env_var("BULKFLOW_PAGE_SIZE")
        page_size = (
            positive_int("BULKFLOW_PAGE_SIZE", raw_page_size)
            if raw_page_size is not None
            else DEFAULT_PAGE_SIZE
        )

    return PipelineConfig(max_reads=max_reads, max_writes=max_writes, page_size=page_size)
