"""Transaction boundary around the record and pass history repositories."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from bulkflow.domain.ports.persistence import PassRunRepository, RecordRepository


@dataclass(slots=True)
class StoreRepositories:
    """Repositories sharing one transaction."""

    records: RecordRepository
    pass_runs: PassRunRepository


@runtime_checkable
class StoreUnitOfWork(Protocol):
    """Context manager that opens a transaction and exposes its repositories.

    Leaving the block without ``commit`` discards the work; leaving it with an
    exception rolls back.
    """

    @property
    def repositories(self) -> StoreRepositories: ...

    def __enter__(self) -> StoreUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
