"""
Capsule Unlock Gate — reveals the motivational capsule after a serious alert.

Rule
----
  Trigger : alert.risk_level in {high, critical}
  Action  : (a) time_capsules.is_unlocked = true for the user's motivational
                capsule (no capsule → nothing to do, not an error)
            (b) risk_alerts.capsule_unlocked = true for the alert

(a) is always attempted and committed before (b), so an interruption between
the two leaves the alert saying "not yet confirmed". The writes are not
atomic together; each is logged and rolled back on failure without failing
the caller.

Idempotency
-----------
alert.capsule_unlocked is the processed marker: once true the gate skips the
alert entirely. The capsule write only happens while the capsule is still
locked, so re-running a half-applied gate finishes the job without repeating
the first write.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.risk_alert import RiskAlert, RiskLevel
from app.services.capsules import get_motivational_capsule

logger = logging.getLogger(__name__)

UNLOCK_THRESHOLD = RiskLevel.high


class SkipReason:
    BELOW_THRESHOLD   = "below_threshold"
    ALREADY_PROCESSED = "already_processed"


@dataclass
class GateResult:
    """What the gate did for one alert."""
    alert_id: int
    fired: bool = False
    capsule_found: bool = False
    capsule_unlocked: bool = False   # capsule is unlocked after this run
    alert_marked: bool = False       # alert.capsule_unlocked is true after this run
    skipped_reason: Optional[str] = None


def should_unlock(risk_level) -> bool:
    return RiskLevel(risk_level).rank >= UNLOCK_THRESHOLD.rank


def apply_unlock_gate(db: Session, alert: RiskAlert) -> GateResult:
    result = GateResult(alert_id=alert.id)

    if not should_unlock(alert.risk_level):
        result.skipped_reason = SkipReason.BELOW_THRESHOLD
        return result
    if alert.capsule_unlocked:
        result.skipped_reason = SkipReason.ALREADY_PROCESSED
        result.alert_marked = True
        return result

    result.fired = True

    # (a) capsule first
    try:
        capsule = get_motivational_capsule(db, alert.user_id)
        if capsule is not None:
            result.capsule_found = True
            if not capsule.is_unlocked:
                capsule.is_unlocked = True
                db.commit()
            result.capsule_unlocked = True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error unlocking motivational capsule for alert %s", alert.id)
        return result

    # (b) then the alert marker
    try:
        alert.capsule_unlocked = True
        db.commit()
        result.alert_marked = True
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error marking alert %s as capsule_unlocked", alert.id)

    return result
