"""Read/write ceilings for one pass."""

from __future__ import annotations

from dataclasses import dataclass, field

from bulkflow.domain.model import OperationKind


@dataclass(frozen=True, slots=True)
class BudgetUsage:
    reads_used: int
    reads_max: int
    writes_used: int
    writes_max: int


@dataclass(slots=True)
class ResourceBudget:
    """Counts operations consumed by a pass against caller-supplied ceilings.

    The counters only ever move through ``try_consume``, which refuses to step past
    a ceiling, so ``used <= max`` holds for both kinds at every observation point.
    A budget belongs to a single pass and is not safe to share across threads.
    """

    reads_max: int
    writes_max: int
    reads_used: int = field(default=0, init=False)
    writes_used: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.reads_max < 0 or self.writes_max < 0:
            raise ValueError(
                f"Budget ceilings must not be negative (reads={self.reads_max}, "
                f"writes={self.writes_max})"
            )

    def try_consume(self, kind: OperationKind) -> bool:
        if self.remaining(kind) <= 0:
            return False
        if kind is OperationKind.READ:
            self.reads_used += 1
        else:
            self.writes_used += 1
        return True

    def used(self, kind: OperationKind) -> int:
        return self.reads_used if kind is OperationKind.READ else self.writes_used

    def limit(self, kind: OperationKind) -> int:
        return self.reads_max if kind is OperationKind.READ else self.writes_max

    def remaining(self, kind: OperationKind) -> int:
        return self.limit(kind) - self.used(kind)

    def exhausted(self, kind: OperationKind) -> bool:
        return self.remaining(kind) <= 0

    def usage(self) -> BudgetUsage:
        return BudgetUsage(
            reads_used=self.reads_used,
            reads_max=self.reads_max,
            writes_used=self.writes_used,
            writes_max=self.writes_max,
        )
