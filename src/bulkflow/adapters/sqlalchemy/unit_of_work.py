"""Engine lifecycle and the SQLAlchemy unit of work for the record store.

``startup`` binds one process-wide engine and migrates it to head; every
``SqlAlchemyUnitOfWork`` opens a session from that engine. Tests call
``startup(engine=..., force=True)`` and ``shutdown()`` around each case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from bulkflow.adapters.sqlalchemy.migrations import upgrade_head
from bulkflow.adapters.sqlalchemy.repositories import (
    SqlAlchemyPassRunRepository,
    SqlAlchemyRecordRepository,
)
from bulkflow.config.storage import get_database_uri
from bulkflow.domain.ports.unit_of_work import StoreRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the store database is used before ``startup`` or twice in a row."""


@dataclass(slots=True)
class _EngineBinding:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = field(default=None, repr=False)

    def bind(self, engine: Engine) -> None:
        self.engine = engine
        self.sessions = sessionmaker(bind=engine, expire_on_commit=False)

    def release(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self.sessions = None

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Record database not started; call "
                "bulkflow.adapters.sqlalchemy.unit_of_work.startup() first"
            )
        return self.sessions()


_BINDING = _EngineBinding()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Bind the store database, creating the engine from configuration if needed.

    The schema is migrated to head before any unit of work can open a session.
    """

    if _BINDING.engine is not None and not force:
        raise StartupError("Record database already started; pass force=True to rebind")

    target = engine or create_engine(database_uri or get_database_uri(), future=True)
    upgrade_head(engine=target)
    if _BINDING.engine is not None and _BINDING.engine is not target:
        _BINDING.release()
    _BINDING.bind(target)


def configured_engine() -> Engine | None:
    return _BINDING.engine


def is_started() -> bool:
    return _BINDING.engine is not None


def shutdown() -> None:
    """Dispose the bound engine; a no-op when nothing is bound."""

    _BINDING.release()


class SqlAlchemyUnitOfWork:
    """One session and transaction over the record and pass history tables."""

    def __init__(self) -> None:
        if not is_started():
            raise StartupError("Record database not started")
        self._session: Session | None = None
        self._repositories: StoreRepositories | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _BINDING.open_session()
        self._repositories = StoreRepositories(
            records=SqlAlchemyRecordRepository(self._session),
            pass_runs=SqlAlchemyPassRunRepository(self._session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> StoreRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from bulkflow.domain.ports.unit_of_work import StoreUnitOfWork

    _uow_check: StoreUnitOfWork = SqlAlchemyUnitOfWork()
