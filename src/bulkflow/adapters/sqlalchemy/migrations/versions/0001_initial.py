"""Create record and pass_run tables.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from bulkflow.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "record",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("fields", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), server_default="1", nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_record")),
    )
    op.create_table(
        "pass_run",
        sa.Column("pass_id", sa.String(length=32), nullable=False),
        sa.Column("state", sa.String(length=16), nullable=False),
        sa.Column("predicate", sa.String(), nullable=False),
        sa.Column("started_at", UTCDateTime(), nullable=False),
        sa.Column("finished_at", UTCDateTime(), nullable=True),
        sa.Column("succeeded", sa.Integer(), nullable=False),
        sa.Column("failed", sa.Integer(), nullable=False),
        sa.Column("skipped", sa.Integer(), nullable=False),
        sa.Column("reads_used", sa.Integer(), nullable=False),
        sa.Column("reads_max", sa.Integer(), nullable=False),
        sa.Column("writes_used", sa.Integer(), nullable=False),
        sa.Column("writes_max", sa.Integer(), nullable=False),
        sa.Column("error", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("pass_id", name=op.f("pk_pass_run")),
    )
    op.create_index(op.f("ix_pass_run_started_at"), "pass_run", ["started_at"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_pass_run_started_at"), table_name="pass_run")
    op.drop_table("pass_run")
    op.drop_table("record")
