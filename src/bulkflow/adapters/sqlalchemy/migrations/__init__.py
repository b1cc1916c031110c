"""Schema migrations for the record store, shipped inside the package."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from bulkflow.config.storage import get_database_uri

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

log = getLogger(__name__)


def _alembic_config(database_uri: str | None = None) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    if database_uri is not None:
        config.set_main_option("sqlalchemy.url", database_uri)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Migrate the record store schema to the newest revision.

    With an ``engine`` the upgrade runs on one of its connections, so in-memory
    SQLite databases keep the schema; otherwise ``database_uri`` or the
    configured database is used.
    """

    if engine is None:
        uri = database_uri or get_database_uri()
        log.debug("Migrating record store at %s", uri)
        command.upgrade(_alembic_config(uri), "head")
        return

    config = _alembic_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, "head")
