"""initial schema: user record tables

Revision ID: 0001
Revises:
Create Date: 2026-10-01 00:00:00.000000

mood_entries, journal_entries, cbt_records, emotion_sessions.
List-valued columns (tags, distortions) are JSON-encoded Text.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- mood_entries ---
    op.create_table(
        "mood_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("mood_emoji", sa.String(16), nullable=False),
        sa.Column("mood_label", sa.String(64), nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("ai_insight", sa.Text(), nullable=True),
        sa.Column("ai_emotion", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("intensity >= 1 AND intensity <= 5", name="ck_mood_intensity_range"),
    )
    op.create_index("ix_mood_entries_id", "mood_entries", ["id"])
    op.create_index("ix_mood_entries_user_id", "mood_entries", ["user_id"])
    op.create_index("ix_mood_entries_created_at", "mood_entries", ["created_at"])

    # --- journal_entries ---
    op.create_table(
        "journal_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.String(64), nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column("ai_reflection", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_journal_entries_id", "journal_entries", ["id"])
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"])
    op.create_index("ix_journal_entries_created_at", "journal_entries", ["created_at"])

    # --- cbt_records ---
    op.create_table(
        "cbt_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("situation", sa.Text(), nullable=False),
        sa.Column("automatic_thought", sa.Text(), nullable=False),
        sa.Column("emotion", sa.String(64), nullable=True),
        sa.Column("distortions", sa.Text(), nullable=True),
        sa.Column("reframed_thought", sa.Text(), nullable=True),
        sa.Column("new_emotion", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cbt_records_id", "cbt_records", ["id"])
    op.create_index("ix_cbt_records_user_id", "cbt_records", ["user_id"])
    op.create_index("ix_cbt_records_created_at", "cbt_records", ["created_at"])

    # --- emotion_sessions ---
    op.create_table(
        "emotion_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("input_text", sa.Text(), nullable=False),
        sa.Column("reflection", sa.Text(), nullable=True),
        sa.Column("reframe", sa.Text(), nullable=True),
        sa.Column("suggestion", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_emotion_sessions_id", "emotion_sessions", ["id"])
    op.create_index("ix_emotion_sessions_user_id", "emotion_sessions", ["user_id"])
    op.create_index("ix_emotion_sessions_created_at", "emotion_sessions", ["created_at"])


def downgrade() -> None:
    for table in ("emotion_sessions", "cbt_records", "journal_entries", "mood_entries"):
        op.drop_table(table)
