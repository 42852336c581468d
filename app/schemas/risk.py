"""
Risk monitor schemas.

POST /risk/assess                → RiskAnalysisResponse
POST /risk/monitor               → MonitorRunResponse
GET  /risk/alerts                → RiskAlertListResponse
GET  /risk/alerts/latest         → LatestAlertResponse
POST /risk/alerts/{id}/unlock    → GateResultResponse
"""
from typing import Any, Optional
from pydantic import BaseModel, Field


class DataAnalyzedResponse(BaseModel):
    cbt_entries: int = 0
    journal_entries: int = 0
    mood_entries: int = 0
    alchemist_sessions: int = 0


class RiskAnalysisResponse(BaseModel):
    risk_level: str = Field(description='"low" | "moderate" | "high" | "critical"')
    analysis_summary: str
    recommendations: list[str]
    data_analyzed: DataAnalyzedResponse


class RiskAlertResponse(BaseModel):
    id: int
    risk_level: str
    analysis_summary: Optional[str] = None
    recommendations: list[str] = Field(default_factory=list)
    data_sources: dict[str, Any] = Field(
        default_factory=dict,
        description="Counts of each record kind considered by the run.",
    )
    capsule_unlocked: bool
    created_at: str


class RiskAlertListResponse(BaseModel):
    total: int
    items: list[RiskAlertResponse]


class GateResultResponse(BaseModel):
    alert_id: int
    fired: bool = Field(description="True if this call performed the unlock writes.")
    capsule_found: bool
    capsule_unlocked: bool
    alert_marked: bool
    skipped_reason: Optional[str] = Field(
        default=None,
        description='"below_threshold" | "already_processed"',
    )


class BannerStateResponse(BaseModel):
    show: bool = Field(
        description="High/critical alert, capsule unlocked, created in the last 24 h."
    )
    risk_level: Optional[str] = None
    label: Optional[str] = None
    is_recent: bool = False


class LatestAlertResponse(BaseModel):
    alert: Optional[RiskAlertResponse] = None
    banner: BannerStateResponse


class MonitorRunResponse(BaseModel):
    ran: bool = Field(description="False when the user was already assessed in the current interval.")
    result: Optional[RiskAnalysisResponse] = None
    alert: Optional[RiskAlertResponse] = None
    gate: Optional[GateResultResponse] = None
    notice: Optional[str] = Field(
        default=None,
        description="User-facing message for high/critical outcomes.",
    )
    last_run_at: Optional[str] = None
    next_run_at: Optional[str] = None
