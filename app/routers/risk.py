"""
Risk monitor router.

POST /risk/assess               — run the Risk Assessor only (nothing persisted)
POST /risk/monitor              — throttled run: assess → record alert → unlock gate
GET  /risk/alerts               — list the caller's alerts (newest first)
GET  /risk/alerts/latest        — latest alert + banner state
POST /risk/alerts/{id}/unlock   — re-run the unlock gate for one alert
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.clock import as_utc
from app.core.jsontext import jload_dict, jload_list
from app.core.security import get_current_user_id
from app.db.base import get_db
from app.models.risk_alert import RiskAlert
from app.schemas.common import ErrorResponse
from app.schemas.risk import (
    BannerStateResponse,
    DataAnalyzedResponse,
    GateResultResponse,
    LatestAlertResponse,
    MonitorRunResponse,
    RiskAlertListResponse,
    RiskAlertResponse,
    RiskAnalysisResponse,
)
from app.services.alerts import get_alert, get_latest_alert, list_alerts
from app.services.capsule_gate import GateResult, apply_unlock_gate
from app.services.classifier import RiskClassifier
from app.services.monitor import DailyThrottle, banner_state, run_monitor
from app.services.risk_assessor import RiskAnalysisResult, assess_risk

router = APIRouter(prefix="/risk", tags=["risk"])

_UPSTREAM_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token."},
    402: {"model": ErrorResponse, "description": "AI service quota exceeded."},
    429: {"model": ErrorResponse, "description": "AI service rate limit exceeded."},
    500: {"model": ErrorResponse, "description": "AI service or database failure."},
}


# ---------------------------------------------------------------------------
# Dependencies (overridable in tests)
# ---------------------------------------------------------------------------

def get_classifier() -> RiskClassifier:
    return RiskClassifier.from_settings()


def get_throttle(db: Session = Depends(get_db)) -> DailyThrottle:
    return DailyThrottle(db)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _iso(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value else None


def _ev(v) -> str:
    return v.value if hasattr(v, "value") else str(v)


def _result_to_response(r: RiskAnalysisResult) -> RiskAnalysisResponse:
    return RiskAnalysisResponse(
        risk_level=_ev(r.risk_level),
        analysis_summary=r.analysis_summary,
        recommendations=r.recommendations,
        data_analyzed=DataAnalyzedResponse(**r.data_analyzed.as_dict()),
    )


def _alert_to_response(a: RiskAlert) -> RiskAlertResponse:
    return RiskAlertResponse(
        id=a.id,
        risk_level=_ev(a.risk_level),
        analysis_summary=a.analysis_summary,
        recommendations=jload_list(a.recommendations),
        data_sources=jload_dict(a.data_sources),
        capsule_unlocked=a.capsule_unlocked,
        created_at=_iso(a.created_at) or "",
    )


def _gate_to_response(g: GateResult) -> GateResultResponse:
    return GateResultResponse(
        alert_id=g.alert_id,
        fired=g.fired,
        capsule_found=g.capsule_found,
        capsule_unlocked=g.capsule_unlocked,
        alert_marked=g.alert_marked,
        skipped_reason=g.skipped_reason,
    )


# ---------------------------------------------------------------------------
# POST /risk/assess
# ---------------------------------------------------------------------------

@router.post(
    "/assess",
    response_model=RiskAnalysisResponse,
    summary="Assess mental-health risk from the last 7 days of records",
    responses=_UPSTREAM_ERRORS,
)
def risk_assess(
    user_id: str = Depends(get_current_user_id),
    classifier: RiskClassifier = Depends(get_classifier),
    db: Session = Depends(get_db),
):
    """
    Read the caller's mood, journal, CBT and emotion-session records from the
    last 7 days and classify them as `low` / `moderate` / `high` / `critical`.

    With no records in the window the result is `low` and the AI service is
    not contacted. Nothing is persisted; use `POST /risk/monitor` for the
    full alert workflow.
    """
    return _result_to_response(assess_risk(db, user_id, classifier))


# ---------------------------------------------------------------------------
# POST /risk/monitor
# ---------------------------------------------------------------------------

@router.post(
    "/monitor",
    response_model=MonitorRunResponse,
    summary="Run the daily risk check and unlock the self-care capsule if needed",
    responses=_UPSTREAM_ERRORS,
)
def risk_monitor(
    user_id: str = Depends(get_current_user_id),
    classifier: RiskClassifier = Depends(get_classifier),
    throttle: DailyThrottle = Depends(get_throttle),
    db: Session = Depends(get_db),
):
    """
    At most once per 24 hours per user:

    1. Assess risk (same as `POST /risk/assess`).
    2. Store a new risk alert with `capsule_unlocked = false`.
    3. For `high` / `critical`, unlock the self-care capsule and mark the alert.

    Inside the interval the call returns `ran = false` and the latest alert.
    An upstream or database error is returned as-is and no alert is stored.
    """
    run = run_monitor(db, user_id, classifier, throttle)
    return MonitorRunResponse(
        ran=run.ran,
        result=_result_to_response(run.result) if run.result else None,
        alert=_alert_to_response(run.alert) if run.alert else None,
        gate=_gate_to_response(run.gate) if run.gate else None,
        notice=run.notice,
        last_run_at=_iso(run.last_run_at),
        next_run_at=_iso(run.next_run_at),
    )


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@router.get(
    "/alerts",
    response_model=RiskAlertListResponse,
    summary="List risk alerts (newest first)",
)
def risk_alerts(
    limit: int = Query(default=50, ge=1, le=200, description="Page size."),
    offset: int = Query(default=0, ge=0, description="Skip N items."),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    total, items = list_alerts(db, user_id, limit=limit, offset=offset)
    return RiskAlertListResponse(
        total=total,
        items=[_alert_to_response(a) for a in items],
    )


@router.get(
    "/alerts/latest",
    response_model=LatestAlertResponse,
    summary="Latest risk alert and whether to show the support banner",
)
def risk_alert_latest(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    alert = get_latest_alert(db, user_id)
    banner = banner_state(alert)
    return LatestAlertResponse(
        alert=_alert_to_response(alert) if alert else None,
        banner=BannerStateResponse(
            show=banner.show,
            risk_level=_ev(banner.risk_level) if banner.risk_level else None,
            label=banner.label,
            is_recent=banner.is_recent,
        ),
    )


@router.post(
    "/alerts/{alert_id}/unlock",
    response_model=GateResultResponse,
    summary="Re-run the capsule unlock gate for an alert",
    responses={404: {"model": ErrorResponse, "description": "Alert not found."}},
)
def risk_alert_unlock(
    alert_id: int,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """
    Idempotent. Completes a partially applied unlock; an alert already marked
    `capsule_unlocked` or below `high` is left untouched.
    """
    alert = get_alert(db, user_id, alert_id)
    return _gate_to_response(apply_unlock_gate(db, alert))
