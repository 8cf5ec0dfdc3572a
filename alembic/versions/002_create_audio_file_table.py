"""Create audio_file table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "audio_file",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("storage_path", sa.String(length=512), nullable=False),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_path"),
    )
    op.create_index(op.f("ix_audio_file_user_id"), "audio_file", ["user_id"])
    op.create_index(op.f("ix_audio_file_created_at"), "audio_file", ["created_at"])


def downgrade() -> None:
    op.drop_index(op.f("ix_audio_file_created_at"), table_name="audio_file")
    op.drop_index(op.f("ix_audio_file_user_id"), table_name="audio_file")
    op.drop_table("audio_file")
