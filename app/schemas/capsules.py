"""
Time capsule schemas.

GET    /capsules                 → CapsuleListResponse
POST   /capsules                 → CapsuleCreateRequest → CapsuleResponse
POST   /capsules/motivational    → MotivationalCapsuleCreateRequest → CapsuleResponse
GET    /capsules/motivational    → MotivationalCapsuleStatusResponse
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.clock import as_utc
from app.models.time_capsule import CapsuleType, TimeCapsule
from app.services.capsules import DEFAULT_MOTIVATIONAL_TITLE


class CapsuleCreateRequest(BaseModel):
    """An ordinary capsule that opens once unlock_date has passed."""
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(min_length=1, max_length=256, examples=["Letter to me in 2027"])
    content: Optional[str] = Field(default=None, max_length=20_000)
    capsule_type: CapsuleType = Field(default=CapsuleType.text)
    media_url: Optional[str] = Field(
        default=None,
        max_length=1024,
        description="Storage URL of the recording (voice / video capsules).",
    )
    unlock_date: datetime = Field(
        description="When the capsule opens. Naive timestamps are read as UTC.",
        examples=["2027-01-01T09:00:00Z"],
    )

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("title must not be empty after stripping whitespace")
        return stripped

    @field_validator("unlock_date")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_payload(self) -> "CapsuleCreateRequest":
        if self.capsule_type == CapsuleType.text.value:
            if not (self.content and self.content.strip()):
                raise ValueError("text capsules need content")
        elif not self.media_url:
            raise ValueError(f"{self.capsule_type} capsules need a media_url")
        return self


class MotivationalCapsuleCreateRequest(BaseModel):
    """The single self-care message, opened only by a high/critical alert."""
    content: str = Field(min_length=1, max_length=20_000)
    title: str = Field(default=DEFAULT_MOTIVATIONAL_TITLE, min_length=1, max_length=256)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("content must not be empty after stripping whitespace")
        return stripped


class CapsuleResponse(BaseModel):
    """content / media_url are withheld while the capsule is locked."""
    id: int
    title: str
    content: Optional[str] = None
    capsule_type: str
    media_url: Optional[str] = None
    is_motivational: bool
    is_unlocked: bool
    unlock_date: str
    created_at: str

    @classmethod
    def from_capsule(cls, capsule: TimeCapsule) -> "CapsuleResponse":
        ctype = capsule.capsule_type
        return cls(
            id=capsule.id,
            title=capsule.title,
            content=capsule.content if capsule.is_unlocked else None,
            capsule_type=ctype.value if hasattr(ctype, "value") else str(ctype),
            media_url=capsule.media_url if capsule.is_unlocked else None,
            is_motivational=capsule.is_motivational,
            is_unlocked=capsule.is_unlocked,
            unlock_date=as_utc(capsule.unlock_date).isoformat(),
            created_at=as_utc(capsule.created_at).isoformat() if capsule.created_at else "",
        )


class CapsuleListResponse(BaseModel):
    total: int
    newly_unlocked: int = Field(
        description="Capsules whose unlock_date passed since the last read and were opened by this request."
    )
    items: list[CapsuleResponse]


class MotivationalCapsuleStatusResponse(BaseModel):
    has_motivational_capsule: bool
    is_unlocked: bool = False
    capsule: Optional[CapsuleResponse] = Field(
        default=None,
        description="Populated once the capsule has been unlocked.",
    )
