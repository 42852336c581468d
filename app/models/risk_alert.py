"""
RiskAlert — one persisted risk assessment run.

Append-only. The only mutation allowed after insert is the single
capsule_unlocked false → true transition made by the unlock gate.

recommendations: JSON array of strings stored as Text.
data_sources:    JSON object with the per-kind record counts considered.
"""
from datetime import datetime
import enum

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class RiskLevel(str, enum.Enum):
    low = "low"
    moderate = "moderate"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskLevel.low, RiskLevel.moderate, RiskLevel.high, RiskLevel.critical]


class RiskAlert(Base):
    __tablename__ = "risk_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    risk_level: Mapped[str] = mapped_column(
        Enum(RiskLevel, name="risk_level_enum"), nullable=False
    )
    analysis_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    recommendations: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON array of recommendation strings",
    )
    data_sources: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON object: counts of each record kind analysed",
    )
    capsule_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
