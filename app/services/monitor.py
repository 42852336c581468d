"""
Mental-health monitor — schedules and chains one assessment run.

    throttle check → assess_risk → record_alert → apply_unlock_gate

Throttle
--------
At most one run per user per ASSESSMENT_INTERVAL_HOURS. The last-run
timestamp lives in `assessment_runs` and is written *before* the assessment
starts, so failed runs count too. DailyThrottle is injected by the router
(see app/routers/risk.py) so tests and other schedulers can swap it.

Banner
------
banner_state() decides whether the support banner is shown for the latest
alert: high/critical, capsule already unlocked, created < 24 h ago.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.clock import as_utc, utcnow
from app.core.config import settings
from app.models.assessment_run import AssessmentRun
from app.models.risk_alert import RiskAlert, RiskLevel
from app.services.alerts import get_latest_alert, record_alert
from app.services.capsule_gate import GateResult, apply_unlock_gate, should_unlock
from app.services.classifier import RiskClassifier
from app.services.risk_assessor import RiskAnalysisResult, assess_risk

logger = logging.getLogger(__name__)

BANNER_WINDOW = timedelta(hours=24)

RISK_LABELS = {
    RiskLevel.critical: "Critical - Please reach out for support",
    RiskLevel.high:     "High - We're here for you",
    RiskLevel.moderate: "Moderate - Consider self-care activities",
    RiskLevel.low:      "Low - You're doing well!",
}

UNLOCK_NOTICES = {
    RiskLevel.critical: (
        "We've noticed you may be struggling. "
        "A special message has been unlocked for you."
    ),
    RiskLevel.high: "We're here for you. Check out your motivational capsule.",
}


# ---------------------------------------------------------------------------
# Throttle
# ---------------------------------------------------------------------------

class DailyThrottle:
    """Last-run timestamp per user, persisted in assessment_runs."""

    def __init__(self, db: Session, interval: Optional[timedelta] = None):
        self.db = db
        self.interval = interval or timedelta(hours=settings.ASSESSMENT_INTERVAL_HOURS)

    def last_run(self, user_id: str) -> Optional[datetime]:
        row = self.db.get(AssessmentRun, user_id)
        return as_utc(row.last_run_at) if row else None

    def next_run_at(self, user_id: str) -> Optional[datetime]:
        last = self.last_run(user_id)
        return last + self.interval if last else None

    def is_due(self, user_id: str, now: datetime) -> bool:
        nxt = self.next_run_at(user_id)
        return nxt is None or now >= nxt

    def mark(self, user_id: str, now: datetime) -> None:
        row = self.db.get(AssessmentRun, user_id)
        if row is None:
            self.db.add(AssessmentRun(user_id=user_id, last_run_at=now))
        else:
            row.last_run_at = now
        self.db.commit()


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

@dataclass
class MonitorRun:
    ran: bool
    result: Optional[RiskAnalysisResult] = None
    alert: Optional[RiskAlert] = None
    gate: Optional[GateResult] = None
    notice: Optional[str] = None
    last_run_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None


def run_monitor(
    db: Session,
    user_id: str,
    classifier: RiskClassifier,
    throttle: DailyThrottle,
    now: Optional[datetime] = None,
    force: bool = False,
) -> MonitorRun:
    """
    Run one throttled assessment for the user.
    Errors from the assessor / recorder propagate; no alert exists in that case.
    """
    current = now or utcnow()
    if not force and not throttle.is_due(user_id, current):
        return MonitorRun(
            ran=False,
            alert=get_latest_alert(db, user_id),
            last_run_at=throttle.last_run(user_id),
            next_run_at=throttle.next_run_at(user_id),
        )

    throttle.mark(user_id, current)

    result = assess_risk(db, user_id, classifier, now=current)
    alert = record_alert(db, user_id, result)

    gate: Optional[GateResult] = None
    notice: Optional[str] = None
    if should_unlock(result.risk_level):
        gate = apply_unlock_gate(db, alert)
        notice = UNLOCK_NOTICES[result.risk_level]
        logger.info(
            "Unlock gate for alert %s: capsule_found=%s alert_marked=%s",
            alert.id, gate.capsule_found, gate.alert_marked,
        )

    return MonitorRun(
        ran=True,
        result=result,
        alert=alert,
        gate=gate,
        notice=notice,
        last_run_at=current,
        next_run_at=current + throttle.interval,
    )


# ---------------------------------------------------------------------------
# Banner
# ---------------------------------------------------------------------------

@dataclass
class BannerState:
    show: bool
    risk_level: Optional[RiskLevel] = None
    label: Optional[str] = None
    is_recent: bool = False


def risk_label(level) -> str:
    return RISK_LABELS[RiskLevel(level)]


def banner_state(alert: Optional[RiskAlert], now: Optional[datetime] = None) -> BannerState:
    if alert is None:
        return BannerState(show=False)
    current = now or utcnow()
    level = RiskLevel(alert.risk_level)
    is_recent = current - as_utc(alert.created_at) < BANNER_WINDOW
    show = should_unlock(level) and bool(alert.capsule_unlocked) and is_recent
    return BannerState(show=show, risk_level=level, label=risk_label(level), is_recent=is_recent)
