"""Create transcript table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "transcript",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("audio_id", sa.Integer(), sa.ForeignKey("audio_file.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("rephrased_text", sa.Text(), nullable=True),
        sa.Column("language", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transcript_audio_id"), "transcript", ["audio_id"], unique=True)
    op.create_index(op.f("ix_transcript_user_id"), "transcript", ["user_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_transcript_user_id"), table_name="transcript")
    op.drop_index(op.f("ix_transcript_audio_id"), table_name="transcript")
    op.drop_table("transcript")
