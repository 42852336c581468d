"""
Time capsule router.

GET    /capsules                 — list (opens capsules whose date has passed)
POST   /capsules                 — create an ordinary capsule
GET    /capsules/motivational    — does the self-care capsule exist / is it open
POST   /capsules/motivational    — create the self-care capsule (once)
DELETE /capsules/{id}            — delete an ordinary capsule
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.security import get_current_user_id
from app.db.base import get_db
from app.schemas.capsules import (
    CapsuleCreateRequest,
    CapsuleListResponse,
    CapsuleResponse,
    MotivationalCapsuleCreateRequest,
    MotivationalCapsuleStatusResponse,
)
from app.schemas.common import ErrorResponse
from app.services.capsules import (
    create_capsule,
    create_motivational_capsule,
    delete_capsule,
    get_motivational_capsule,
    list_capsules,
)

router = APIRouter(prefix="/capsules", tags=["capsules"])


@router.get(
    "",
    response_model=CapsuleListResponse,
    summary="List time capsules",
)
def capsules_list(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Return the caller's capsules, newest first.

    Before listing, every ordinary capsule whose `unlock_date` has passed is
    opened and saved; `newly_unlocked` counts the ones opened by this call.
    Locked capsules are returned without `content` / `media_url`.
    """
    capsules, released = list_capsules(db, user_id)
    return CapsuleListResponse(
        total=len(capsules),
        newly_unlocked=len(released),
        items=[CapsuleResponse.from_capsule(c) for c in capsules],
    )


@router.post(
    "",
    response_model=CapsuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a time capsule",
)
def capsules_create(
    payload: CapsuleCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    capsule = create_capsule(
        db,
        user_id,
        title=payload.title,
        unlock_date=payload.unlock_date,
        content=payload.content,
        capsule_type=payload.capsule_type,
        media_url=payload.media_url,
    )
    return CapsuleResponse.from_capsule(capsule)


@router.get(
    "/motivational",
    response_model=MotivationalCapsuleStatusResponse,
    summary="Self-care capsule status",
)
def capsules_motivational_status(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    capsule = get_motivational_capsule(db, user_id)
    if capsule is None:
        return MotivationalCapsuleStatusResponse(has_motivational_capsule=False)
    return MotivationalCapsuleStatusResponse(
        has_motivational_capsule=True,
        is_unlocked=capsule.is_unlocked,
        capsule=CapsuleResponse.from_capsule(capsule) if capsule.is_unlocked else None,
    )


@router.post(
    "/motivational",
    response_model=CapsuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Write the self-care capsule",
    responses={409: {"model": ErrorResponse, "description": "Self-care capsule already exists."}},
)
def capsules_motivational_create(
    payload: MotivationalCapsuleCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Store a message for a hard day. It stays sealed until a risk check comes
    back `high` or `critical`. Only one per user: a second attempt returns **409**.
    """
    capsule = create_motivational_capsule(db, user_id, payload.content, payload.title)
    return CapsuleResponse.from_capsule(capsule)


@router.delete(
    "/{capsule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a time capsule",
    responses={
        404: {"model": ErrorResponse, "description": "Capsule not found."},
        409: {"model": ErrorResponse, "description": "The self-care capsule cannot be deleted."},
    },
)
def capsules_delete(
    capsule_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    delete_capsule(db, user_id, capsule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
