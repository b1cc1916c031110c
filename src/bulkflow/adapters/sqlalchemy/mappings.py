"""SQLAlchemy table metadata for records and pass history."""

from __future__ import annotations

from datetime import UTC, datetime
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

record_table = Table(
    "record",
    metadata,
    Column("id", String, primary_key=True),
    Column("fields", JSON, nullable=False, default=dict),
    Column("version", Integer, nullable=False, default=1, server_default="1"),
    Column("updated_at", UTCDateTime, nullable=True),
)

pass_run_table = Table(
    "pass_run",
    metadata,
    Column("pass_id", String(32), primary_key=True),
    Column("state", String(16), nullable=False),
    Column("predicate", String, nullable=False),
    Column("started_at", UTCDateTime, nullable=False),
    Column("finished_at", UTCDateTime, nullable=True),
    Column("succeeded", Integer, nullable=False),
    Column("failed", Integer, nullable=False),
    Column("skipped", Integer, nullable=False),
    Column("reads_used", Integer, nullable=False),
    Column("reads_max", Integer, nullable=False),
    Column("writes_used", Integer, nullable=False),
    Column("writes_max", Integer, nullable=False),
    Column("error", String, nullable=True),
    Index(None, "started_at"),
)
