"""
Record Store schemas.

POST   /records/<kind>        → <Kind>Create → <Kind>Response
PATCH  /records/<kind>/{id}   → <Kind>Update → <Kind>Response
GET    /records/<kind>        → <Kind>ListResponse

Update schemas only carry free-text fields: structured fields (labels,
intensity, distortion tags) are fixed once a record is created.
"""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.jsontext import jload_list


def _strip_required(v):
    stripped = v.strip() if isinstance(v, str) else v
    if not stripped:
        raise ValueError("must not be empty after stripping whitespace")
    return stripped


def _strip_optional(v):
    if isinstance(v, str):
        return v.strip() or None
    return v


def _decode_list(v):
    if v is None or isinstance(v, str):
        return jload_list(v)
    return v


Tags = Annotated[list[Annotated[str, Field(min_length=1, max_length=64)]], Field(max_length=20)]


# ---------------------------------------------------------------------------
# Mood
# ---------------------------------------------------------------------------

class MoodCreate(BaseModel):
    mood_emoji: str = Field(min_length=1, max_length=16, examples=["😔"])
    mood_label: str = Field(min_length=1, max_length=64, examples=["Sad"])
    intensity: int = Field(ge=1, le=5, description="1 (mild) – 5 (intense).")
    note: Optional[str] = Field(default=None, max_length=5_000)
    ai_insight: Optional[str] = Field(default=None, max_length=5_000)
    ai_emotion: Optional[str] = Field(default=None, max_length=64)

    strip_label_validator = field_validator("mood_label", mode="before")(_strip_required)
    strip_note_validator = field_validator("note", mode="before")(_strip_optional)


class MoodUpdate(BaseModel):
    note: Optional[str] = Field(default=None, max_length=5_000)


class MoodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mood_emoji: str
    mood_label: str
    intensity: int
    note: Optional[str] = None
    ai_insight: Optional[str] = None
    ai_emotion: Optional[str] = None
    created_at: datetime


class MoodListResponse(BaseModel):
    total: int
    items: list[MoodResponse]


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------

class JournalCreate(BaseModel):
    title: str = Field(min_length=1, max_length=256)
    content: str = Field(min_length=1, max_length=20_000)
    mood: Optional[str] = Field(default=None, max_length=64)
    tags: Tags = Field(default_factory=list)
    ai_reflection: Optional[str] = Field(default=None, max_length=5_000)

    strip_text_validator = field_validator("title", "content", mode="before")(_strip_required)


class JournalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=256)
    content: Optional[str] = Field(default=None, min_length=1, max_length=20_000)


class JournalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    mood: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    ai_reflection: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    tags_validator = field_validator("tags", mode="before")(_decode_list)


class JournalListResponse(BaseModel):
    total: int
    items: list[JournalResponse]


# ---------------------------------------------------------------------------
# CBT thought record
# ---------------------------------------------------------------------------

class CBTCreate(BaseModel):
    situation: str = Field(min_length=1, max_length=5_000)
    automatic_thought: str = Field(min_length=1, max_length=5_000)
    emotion: Optional[str] = Field(default=None, max_length=64)
    distortions: Tags = Field(
        default_factory=list,
        examples=[["catastrophizing", "all_or_nothing"]],
    )
    reframed_thought: Optional[str] = Field(default=None, max_length=5_000)
    new_emotion: Optional[str] = Field(default=None, max_length=64)

    strip_text_validator = field_validator("situation", "automatic_thought", mode="before")(_strip_required)


class CBTUpdate(BaseModel):
    situation: Optional[str] = Field(default=None, min_length=1, max_length=5_000)
    automatic_thought: Optional[str] = Field(default=None, min_length=1, max_length=5_000)
    reframed_thought: Optional[str] = Field(default=None, max_length=5_000)


class CBTResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    situation: str
    automatic_thought: str
    emotion: Optional[str] = None
    distortions: list[str] = Field(default_factory=list)
    reframed_thought: Optional[str] = None
    new_emotion: Optional[str] = None
    created_at: datetime

    distortions_validator = field_validator("distortions", mode="before")(_decode_list)


class CBTListResponse(BaseModel):
    total: int
    items: list[CBTResponse]


# ---------------------------------------------------------------------------
# Emotion alchemist session
# ---------------------------------------------------------------------------

class EmotionSessionCreate(BaseModel):
    input_text: str = Field(min_length=1, max_length=5_000)
    reflection: Optional[str] = Field(default=None, max_length=5_000)
    reframe: Optional[str] = Field(default=None, max_length=5_000)
    suggestion: Optional[str] = Field(default=None, max_length=5_000)

    strip_text_validator = field_validator("input_text", mode="before")(_strip_required)


class EmotionSessionUpdate(BaseModel):
    input_text: Optional[str] = Field(default=None, min_length=1, max_length=5_000)


class EmotionSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    input_text: str
    reflection: Optional[str] = None
    reframe: Optional[str] = None
    suggestion: Optional[str] = None
    created_at: datetime


class EmotionSessionListResponse(BaseModel):
    total: int
    items: list[EmotionSessionResponse]
