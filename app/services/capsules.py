"""
Time capsule service.

Time-gate (ordinary capsules)
-----------------------------
There is no background scheduler. Every list read first flips
is_unlocked → true for the caller's non-motivational capsules whose
unlock_date has passed, then returns the list. A capsule whose list is never
read again stays flagged as locked until the next read. Nothing re-locks a
capsule, so once observed unlocked it stays unlocked.

Motivational capsule
--------------------
At most one per user. Stored with MOTIVATIONAL_UNLOCK_SENTINEL as its
unlock_date; the sentinel is display-only and the time-gate ignores
motivational capsules, so only the risk unlock gate can reveal it.

Public API
----------
release_due_capsules(db, user_id, now)                 -> list[TimeCapsule]
list_capsules(db, user_id, now)                        -> tuple[list, list]
create_capsule(db, user_id, ...)                       -> TimeCapsule
get_motivational_capsule(db, user_id)                  -> TimeCapsule | None
create_motivational_capsule(db, user_id, content, title) -> TimeCapsule
delete_capsule(db, user_id, capsule_id)                -> None
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.errors import (
    CapsuleNotFoundError,
    MotivationalCapsuleExistsError,
    MotivationalCapsuleProtectedError,
)
from app.models.time_capsule import CapsuleType, TimeCapsule

logger = logging.getLogger(__name__)

MOTIVATIONAL_UNLOCK_SENTINEL = datetime(2099, 12, 31, tzinfo=timezone.utc)
DEFAULT_MOTIVATIONAL_TITLE = "My Self-Care Message"


# ---------------------------------------------------------------------------
# Time-gate
# ---------------------------------------------------------------------------

def release_due_capsules(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
) -> list[TimeCapsule]:
    """Unlock and persist every ordinary capsule whose unlock_date has passed."""
    current = now or utcnow()
    due = (
        db.query(TimeCapsule)
        .filter(
            TimeCapsule.user_id == user_id,
            TimeCapsule.is_motivational.is_(False),
            TimeCapsule.is_unlocked.is_(False),
            TimeCapsule.unlock_date <= current,
        )
        .all()
    )
    if not due:
        return []
    for capsule in due:
        capsule.is_unlocked = True
    db.commit()
    logger.info("%d time capsule(s) unlocked for user %s", len(due), user_id)
    return due


def list_capsules(
    db: Session,
    user_id: str,
    now: Optional[datetime] = None,
) -> tuple[list[TimeCapsule], list[TimeCapsule]]:
    """Return (capsules, newly_unlocked). Applies the time-gate first."""
    released = release_due_capsules(db, user_id, now)
    capsules = (
        db.query(TimeCapsule)
        .filter(TimeCapsule.user_id == user_id)
        .order_by(TimeCapsule.created_at.desc(), TimeCapsule.id.desc())
        .all()
    )
    return capsules, released


# ---------------------------------------------------------------------------
# Create / delete
# ---------------------------------------------------------------------------

def create_capsule(
    db: Session,
    user_id: str,
    title: str,
    unlock_date: datetime,
    content: Optional[str] = None,
    capsule_type: CapsuleType = CapsuleType.text,
    media_url: Optional[str] = None,
) -> TimeCapsule:
    capsule = TimeCapsule(
        user_id=user_id,
        title=title,
        content=content,
        capsule_type=capsule_type,
        media_url=media_url,
        unlock_date=as_utc(unlock_date),
        is_unlocked=False,
        is_motivational=False,
    )
    db.add(capsule)
    db.commit()
    db.refresh(capsule)
    return capsule


def get_motivational_capsule(db: Session, user_id: str) -> Optional[TimeCapsule]:
    return (
        db.query(TimeCapsule)
        .filter(
            TimeCapsule.user_id == user_id,
            TimeCapsule.is_motivational.is_(True),
        )
        .first()
    )


def create_motivational_capsule(
    db: Session,
    user_id: str,
    content: str,
    title: str = DEFAULT_MOTIVATIONAL_TITLE,
) -> TimeCapsule:
    """
    Create the user's single self-care capsule.
    Raises MotivationalCapsuleExistsError if one already exists; the partial
    unique index catches a concurrent second insert.
    """
    existing = get_motivational_capsule(db, user_id)
    if existing is not None:
        raise MotivationalCapsuleExistsError(capsule_id=existing.id)

    capsule = TimeCapsule(
        user_id=user_id,
        title=title,
        content=content,
        capsule_type=CapsuleType.text,
        unlock_date=MOTIVATIONAL_UNLOCK_SENTINEL,
        is_unlocked=False,
        is_motivational=True,
    )
    db.add(capsule)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise MotivationalCapsuleExistsError()
    db.refresh(capsule)
    return capsule


def delete_capsule(db: Session, user_id: str, capsule_id: int) -> None:
    capsule = (
        db.query(TimeCapsule)
        .filter(TimeCapsule.id == capsule_id, TimeCapsule.user_id == user_id)
        .first()
    )
    if capsule is None:
        raise CapsuleNotFoundError(capsule_id)
    if capsule.is_motivational:
        raise MotivationalCapsuleProtectedError(capsule_id)
    db.delete(capsule)
    db.commit()
