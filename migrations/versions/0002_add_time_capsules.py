"""add time_capsules table

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-03

Partial unique index: at most one is_motivational capsule per user.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    capsule_type_enum = sa.Enum("text", "voice", "video", name="capsule_type_enum")
    capsule_type_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "time_capsules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("capsule_type", sa.Enum(
            "text", "voice", "video", name="capsule_type_enum", create_type=False,
        ), nullable=False),
        sa.Column("media_url", sa.String(1024), nullable=True),
        sa.Column("is_motivational", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("unlock_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_time_capsules_id", "time_capsules", ["id"])
    op.create_index("ix_time_capsules_user_id", "time_capsules", ["user_id"])
    op.create_index(
        "uq_time_capsules_one_motivational",
        "time_capsules",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("is_motivational"),
        sqlite_where=sa.text("is_motivational = 1"),
    )


def downgrade() -> None:
    op.drop_index("uq_time_capsules_one_motivational", table_name="time_capsules")
    op.drop_index("ix_time_capsules_user_id", table_name="time_capsules")
    op.drop_index("ix_time_capsules_id", table_name="time_capsules")
    op.drop_table("time_capsules")
    sa.Enum(name="capsule_type_enum").drop(op.get_bind(), checkfirst=True)
