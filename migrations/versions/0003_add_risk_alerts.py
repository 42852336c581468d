"""add risk_alerts and assessment_runs tables

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-06

risk_alerts is append-only apart from the capsule_unlocked flag.
assessment_runs holds one last-run timestamp per user (daily throttle).
"""
from alembic import op
import sqlalchemy as sa

revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    risk_level_enum = sa.Enum("low", "moderate", "high", "critical", name="risk_level_enum")
    risk_level_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "risk_alerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("risk_level", sa.Enum(
            "low", "moderate", "high", "critical", name="risk_level_enum", create_type=False,
        ), nullable=False),
        sa.Column("analysis_summary", sa.Text(), nullable=True),
        sa.Column("recommendations", sa.Text(), nullable=True),
        sa.Column("data_sources", sa.Text(), nullable=True),
        sa.Column("capsule_unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_risk_alerts_id", "risk_alerts", ["id"])
    op.create_index("ix_risk_alerts_user_id", "risk_alerts", ["user_id"])
    op.create_index("ix_risk_alerts_created_at", "risk_alerts", ["created_at"])

    op.create_table(
        "assessment_runs",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("last_run_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("assessment_runs")
    op.drop_index("ix_risk_alerts_created_at", table_name="risk_alerts")
    op.drop_index("ix_risk_alerts_user_id", table_name="risk_alerts")
    op.drop_index("ix_risk_alerts_id", table_name="risk_alerts")
    op.drop_table("risk_alerts")
    sa.Enum(name="risk_level_enum").drop(op.get_bind(), checkfirst=True)
