"""
Record Store router.

For each kind — moods, journals, cbt, emotion-sessions:

  POST   /records/<kind>          create (201)
  GET    /records/<kind>          list, newest first (paginated)
  PATCH  /records/<kind>/{id}     edit free-text fields
  DELETE /records/<kind>/{id}     delete (204)

Routes are generated by _mount(); the handlers close over the model and
schema types, so this module keeps runtime annotations.
"""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.security import get_current_user_id
from app.db.base import get_db
from app.models.cbt_record import CBTRecord
from app.models.emotion_session import EmotionSession
from app.models.journal_entry import JournalEntry
from app.models.mood_entry import MoodEntry
from app.schemas.common import ErrorResponse
from app.schemas.records import (
    CBTCreate, CBTListResponse, CBTResponse, CBTUpdate,
    EmotionSessionCreate, EmotionSessionListResponse, EmotionSessionResponse, EmotionSessionUpdate,
    JournalCreate, JournalListResponse, JournalResponse, JournalUpdate,
    MoodCreate, MoodListResponse, MoodResponse, MoodUpdate,
)
from app.services.records import (
    create_record,
    delete_record,
    list_records,
    update_record,
)

router = APIRouter(prefix="/records", tags=["records"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Record not found."}}


def _mount(path, label, model, create_schema, update_schema, out_schema, list_schema):

    @router.post(
        f"/{path}",
        response_model=out_schema,
        status_code=status.HTTP_201_CREATED,
        summary=f"Create a {label}",
        name=f"create_{path}",
    )
    def create(
        payload: create_schema,
        user_id: str = Depends(get_current_user_id),
        db: Session = Depends(get_db),
    ):
        row = create_record(db, model, user_id, payload.model_dump())
        return out_schema.model_validate(row)

    @router.get(
        f"/{path}",
        response_model=list_schema,
        summary=f"List {label}s (newest first)",
        name=f"list_{path}",
    )
    def list_(
        limit: int = Query(default=50, ge=1, le=200, description="Page size."),
        offset: int = Query(default=0, ge=0, description="Skip N items."),
        user_id: str = Depends(get_current_user_id),
        db: Session = Depends(get_db),
    ):
        total, items = list_records(db, model, user_id, limit=limit, offset=offset)
        return list_schema(
            total=total,
            items=[out_schema.model_validate(r) for r in items],
        )

    @router.patch(
        f"/{path}/{{record_id}}",
        response_model=out_schema,
        summary=f"Edit a {label}",
        responses=_NOT_FOUND,
        name=f"update_{path}",
    )
    def update(
        record_id: int,
        payload: update_schema,
        user_id: str = Depends(get_current_user_id),
        db: Session = Depends(get_db),
    ):
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        row = update_record(db, model, user_id, record_id, changes)
        return out_schema.model_validate(row)

    @router.delete(
        f"/{path}/{{record_id}}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary=f"Delete a {label}",
        responses=_NOT_FOUND,
        name=f"delete_{path}",
    )
    def delete(
        record_id: int,
        user_id: str = Depends(get_current_user_id),
        db: Session = Depends(get_db),
    ):
        delete_record(db, model, user_id, record_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


_mount("moods", "mood entry", MoodEntry,
       MoodCreate, MoodUpdate, MoodResponse, MoodListResponse)
_mount("journals", "journal entry", JournalEntry,
       JournalCreate, JournalUpdate, JournalResponse, JournalListResponse)
_mount("cbt", "CBT thought record", CBTRecord,
       CBTCreate, CBTUpdate, CBTResponse, CBTListResponse)
_mount("emotion-sessions", "emotion session", EmotionSession,
       EmotionSessionCreate, EmotionSessionUpdate, EmotionSessionResponse, EmotionSessionListResponse)
