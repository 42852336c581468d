"""
AssessmentRun — last time a risk assessment was started for a user.

One row per user, overwritten on every run. Backs the once-per-interval
throttle in app/services/monitor.py.
"""
from datetime import datetime
from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AssessmentRun(Base):
    __tablename__ = "assessment_runs"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    last_run_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
