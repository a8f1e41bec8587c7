"""Create transcripts and segments tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "transcripts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_transcripts_url"), "transcripts", ["url"])

    op.create_table(
        "segments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("transcript_id", sa.Integer(), sa.ForeignKey("transcripts.id"), nullable=False),
        sa.Column("start_time_sec", sa.Float(), nullable=False),
        sa.Column("end_time_sec", sa.Float(), nullable=False),
        sa.Column("text_content", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_segments_transcript_id"), "segments", ["transcript_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_segments_transcript_id"), table_name="segments")
    op.drop_table("segments")
    op.drop_index(op.f("ix_transcripts_url"), table_name="transcripts")
    op.drop_table("transcripts")
