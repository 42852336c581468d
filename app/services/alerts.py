"""
Alert Recorder — persists risk assessments as risk_alerts rows.

Pure append: no dedup, no merge with earlier alerts. A failed insert rolls
back and raises AlertPersistenceError so callers treat the assessment as
not having happened.

Public API
----------
record_alert(db, user_id, result)              -> RiskAlert
get_alert(db, user_id, alert_id)               -> RiskAlert
get_latest_alert(db, user_id)                  -> RiskAlert | None
list_alerts(db, user_id, limit, offset)        -> tuple[int, list[RiskAlert]]
"""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import AlertNotFoundError, AlertPersistenceError
from app.core.jsontext import jdump
from app.models.risk_alert import RiskAlert
from app.services.risk_assessor import RiskAnalysisResult

logger = logging.getLogger(__name__)


def record_alert(db: Session, user_id: str, result: RiskAnalysisResult) -> RiskAlert:
    alert = RiskAlert(
        user_id=user_id,
        risk_level=result.risk_level,
        analysis_summary=result.analysis_summary,
        recommendations=jdump(result.recommendations),
        data_sources=jdump(result.data_analyzed.as_dict()),
        capsule_unlocked=False,
    )
    try:
        db.add(alert)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to persist risk alert for user %s: %s", user_id, exc)
        raise AlertPersistenceError(reason=type(exc).__name__) from exc
    db.refresh(alert)
    return alert


def get_alert(db: Session, user_id: str, alert_id: int) -> RiskAlert:
    alert = (
        db.query(RiskAlert)
        .filter(RiskAlert.id == alert_id, RiskAlert.user_id == user_id)
        .first()
    )
    if alert is None:
        raise AlertNotFoundError(alert_id)
    return alert


def get_latest_alert(db: Session, user_id: str) -> Optional[RiskAlert]:
    return (
        db.query(RiskAlert)
        .filter(RiskAlert.user_id == user_id)
        .order_by(RiskAlert.created_at.desc(), RiskAlert.id.desc())
        .first()
    )


def list_alerts(
    db: Session,
    user_id: str,
    limit: int = 50,
    offset: int = 0,
) -> tuple[int, list[RiskAlert]]:
    """Return (total, page) of the user's alerts, newest first."""
    q = db.query(RiskAlert).filter(RiskAlert.user_id == user_id)
    total = q.count()
    items = (
        q.order_by(RiskAlert.created_at.desc(), RiskAlert.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, items
