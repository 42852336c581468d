"""
TimeCapsule — a message to the user's future self.

Two flavours share the table:
  ordinary      — is_unlocked flips once unlock_date has passed (lazily, on
                  the next list read; see app/services/capsules.py)
  motivational  — the single self-care capsule. Stored with a sentinel
                  unlock_date and unlocked only by the risk unlock gate.

At most one motivational capsule per user: partial unique index on user_id.
"""
from datetime import datetime
import enum

from sqlalchemy import (
    Boolean, DateTime, Enum, Index, Integer, String, Text, func, text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class CapsuleType(str, enum.Enum):
    text = "text"
    voice = "voice"
    video = "video"


class TimeCapsule(Base):
    __tablename__ = "time_capsules"
    __table_args__ = (
        Index(
            "uq_time_capsules_one_motivational",
            "user_id",
            unique=True,
            postgresql_where=text("is_motivational"),
            sqlite_where=text("is_motivational = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    capsule_type: Mapped[str] = mapped_column(
        Enum(CapsuleType, name="capsule_type_enum"),
        nullable=False,
        default=CapsuleType.text,
    )
    media_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_motivational: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_unlocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    unlock_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
