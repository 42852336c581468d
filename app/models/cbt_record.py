"""
CBTRecord — a thought record: situation, automatic thought, the emotion it
produced, the cognitive distortions the user recognised, and the reframe.
"""
from datetime import datetime
from sqlalchemy import Integer, String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CBTRecord(Base):
    __tablename__ = "cbt_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    situation: Mapped[str] = mapped_column(Text, nullable=False)
    automatic_thought: Mapped[str] = mapped_column(Text, nullable=False)
    emotion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    distortions: Mapped[str | None] = mapped_column(
        Text, nullable=True,
        comment="JSON array of distortion tags (catastrophizing, all_or_nothing …)",
    )
    reframed_thought: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_emotion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
