"""Alembic environment for the record store schema.

``upgrade_head`` hands over an open connection through
``config.attributes["connection"]``; the CLI path (``alembic upgrade head``)
connects from ``sqlalchemy.url`` or the bulkflow database configuration.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from alembic import context
from sqlalchemy import create_engine, pool

from bulkflow.adapters.sqlalchemy.mappings import metadata
from bulkflow.config import configure_logging, get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

config = context.config
configure_logging()
log = logging.getLogger("alembic.env")

# batch mode so ALTERs work on SQLite
_OPTIONS = {
    "target_metadata": metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    url = _database_url()
    log.info("Rendering record store migrations for %s", url)
    context.configure(url=url, literal_binds=True, **_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    handed_over: Connection | None = config.attributes.get("connection")
    if handed_over is not None:
        _migrate(handed_over)
        return

    engine = create_engine(_database_url(), poolclass=pool.NullPool, future=True)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
