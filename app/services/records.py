"""
Record Store service — owner-scoped CRUD for the four user record kinds.

Every query filters by user_id; a row owned by someone else behaves exactly
like a missing row. List-valued columns (tags, distortions) are stored as
JSON text.
"""
from __future__ import annotations

from typing import Any, Type

from sqlalchemy.orm import Session

from app.core.errors import RecordNotFoundError
from app.core.jsontext import jdump
from app.db.base import Base
from app.models.cbt_record import CBTRecord
from app.models.emotion_session import EmotionSession
from app.models.journal_entry import JournalEntry
from app.models.mood_entry import MoodEntry

RECORD_LABELS: dict[type, str] = {
    MoodEntry: "Mood entry",
    JournalEntry: "Journal entry",
    CBTRecord: "CBT record",
    EmotionSession: "Emotion session",
}

_LIST_FIELDS = {"tags", "distortions"}


def _encode(values: dict[str, Any]) -> dict[str, Any]:
    return {
        k: (jdump(v) if k in _LIST_FIELDS else v)
        for k, v in values.items()
    }


def create_record(db: Session, model: Type[Base], user_id: str, values: dict[str, Any]):
    row = model(user_id=user_id, **_encode(values))
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_record(db: Session, model: Type[Base], user_id: str, record_id: int):
    row = (
        db.query(model)
        .filter(model.id == record_id, model.user_id == user_id)
        .first()
    )
    if row is None:
        raise RecordNotFoundError(RECORD_LABELS[model], record_id)
    return row


def list_records(
    db: Session,
    model: Type[Base],
    user_id: str,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list]:
    """Return (total, page) ordered by created_at desc."""
    q = db.query(model).filter(model.user_id == user_id)
    total = q.count()
    items = (
        q.order_by(model.created_at.desc(), model.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, items


def update_record(
    db: Session,
    model: Type[Base],
    user_id: str,
    record_id: int,
    changes: dict[str, Any],
):
    """Apply free-text edits. Fields absent from `changes` are left untouched."""
    row = get_record(db, model, user_id, record_id)
    for key, value in _encode(changes).items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    return row


def delete_record(db: Session, model: Type[Base], user_id: str, record_id: int) -> None:
    row = get_record(db, model, user_id, record_id)
    db.delete(row)
    db.commit()
