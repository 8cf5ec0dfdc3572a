"""Create daily_mood_entry table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "004"
down_revision: str | None = "003"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "daily_mood_entry",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("day_quality", sa.String(length=16), nullable=False),
        sa.Column("emotions", sa.JSON(), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "entry_date", name="uq_daily_mood_entry_user_day"),
    )
    op.create_index(op.f("ix_daily_mood_entry_user_id"), "daily_mood_entry", ["user_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_daily_mood_entry_user_id"), table_name="daily_mood_entry")
    op.drop_table("daily_mood_entry")
