"""
Risk Assessor — 7-day lookback over a user's records, classified by the LLM.

Steps
-----
  1. Fetch cbt_records, journal_entries, mood_entries and emotion_sessions
     created in [now - RISK_LOOKBACK_DAYS, now], newest first. The four reads
     run concurrently, each on its own short-lived session bound to the
     caller's engine, and are joined before continuing.
  2. Nothing found → fixed low-risk result, the classifier is not called.
  3. Otherwise build a compact summary (free text truncated) and hand it to
     RiskClassifier.classify().
  4. Return RiskAnalysisResult with the per-kind counts from step 1.

Read-only: this module never writes. Persisting the outcome is the job of
app/services/alerts.py.

Public API
----------
collect_window(db, user_id, since, until)     -> RecordWindow
build_data_summary(window)                    -> dict
assess_risk(db, user_id, classifier, now)     -> RiskAnalysisResult
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.jsontext import jload_list
from app.models.cbt_record import CBTRecord
from app.models.emotion_session import EmotionSession
from app.models.journal_entry import JournalEntry
from app.models.mood_entry import MoodEntry
from app.models.risk_alert import RiskLevel
from app.services.classifier import RiskClassifier

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class DataAnalyzed:
    cbt_entries: int = 0
    journal_entries: int = 0
    mood_entries: int = 0
    alchemist_sessions: int = 0

    @property
    def is_empty(self) -> bool:
        return not any(self.as_dict().values())

    def as_dict(self) -> dict[str, int]:
        return {
            "cbt_entries": self.cbt_entries,
            "journal_entries": self.journal_entries,
            "mood_entries": self.mood_entries,
            "alchemist_sessions": self.alchemist_sessions,
        }


@dataclass
class RiskAnalysisResult:
    risk_level: RiskLevel
    analysis_summary: str
    recommendations: list[str]
    data_analyzed: DataAnalyzed
    source: str = "tool_call"   # "tool_call" | "fallback" | "no_data"


@dataclass
class RecordWindow:
    cbt_records: list[CBTRecord] = field(default_factory=list)
    journal_entries: list[JournalEntry] = field(default_factory=list)
    mood_entries: list[MoodEntry] = field(default_factory=list)
    emotion_sessions: list[EmotionSession] = field(default_factory=list)

    def counts(self) -> DataAnalyzed:
        return DataAnalyzed(
            cbt_entries=len(self.cbt_records),
            journal_entries=len(self.journal_entries),
            mood_entries=len(self.mood_entries),
            alchemist_sessions=len(self.emotion_sessions),
        )


NO_DATA_SUMMARY = "Not enough data to perform analysis. Keep logging your thoughts and moods."
NO_DATA_RECOMMENDATIONS = ["Log your mood daily", "Use the journal to express your thoughts"]

# Prompt-size bounds for free-text fields
SHORT_TEXT = 200
LONG_TEXT = 300


# ---------------------------------------------------------------------------
# Step 1 — concurrent fetch
# ---------------------------------------------------------------------------

def _fetch_kind(bind, model, user_id: str, since: datetime, until: datetime) -> list:
    with Session(bind=bind) as session:
        return (
            session.query(model)
            .filter(
                model.user_id == user_id,
                model.created_at >= since,
                model.created_at <= until,
            )
            .order_by(model.created_at.desc())
            .all()
        )


def collect_window(
    db: Session,
    user_id: str,
    since: datetime,
    until: Optional[datetime] = None,
) -> RecordWindow:
    """Fan out one read per record kind and join the results."""
    bind = db.get_bind()
    until = until or utcnow()
    kinds = {
        "cbt_records": CBTRecord,
        "journal_entries": JournalEntry,
        "mood_entries": MoodEntry,
        "emotion_sessions": EmotionSession,
    }
    with ThreadPoolExecutor(max_workers=len(kinds)) as pool:
        futures = {
            name: pool.submit(_fetch_kind, bind, model, user_id, since, until)
            for name, model in kinds.items()
        }
        return RecordWindow(**{name: f.result() for name, f in futures.items()})


# ---------------------------------------------------------------------------
# Step 3 — summary for the prompt
# ---------------------------------------------------------------------------

def _cut(text: Optional[str], limit: int) -> Optional[str]:
    return text[:limit] if text else text


def build_data_summary(window: RecordWindow) -> dict[str, Any]:
    return {
        "cbt_patterns": [
            {
                "situation": _cut(r.situation, SHORT_TEXT),
                "thought": _cut(r.automatic_thought, SHORT_TEXT),
                "emotion": r.emotion,
                "distortions": jload_list(r.distortions),
            }
            for r in window.cbt_records
        ],
        "journal_excerpts": [
            {
                "mood": j.mood,
                "title": j.title,
                "contentSnippet": _cut(j.content, LONG_TEXT),
            }
            for j in window.journal_entries
        ],
        "mood_trend": [
            {
                "label": m.mood_label,
                "intensity": m.intensity,
                "note": _cut(m.note, SHORT_TEXT),
                "ai_insight": _cut(m.ai_insight, SHORT_TEXT),
            }
            for m in window.mood_entries
        ],
        "alchemist_inputs": [
            {
                "input": _cut(a.input_text, LONG_TEXT),
                "reflection": _cut(a.reflection, SHORT_TEXT),
            }
            for a in window.emotion_sessions
        ],
    }


# ---------------------------------------------------------------------------
# Public — main entry point
# ---------------------------------------------------------------------------

def no_data_result() -> RiskAnalysisResult:
    return RiskAnalysisResult(
        risk_level=RiskLevel.low,
        analysis_summary=NO_DATA_SUMMARY,
        recommendations=list(NO_DATA_RECOMMENDATIONS),
        data_analyzed=DataAnalyzed(),
        source="no_data",
    )


def assess_risk(
    db: Session,
    user_id: str,
    classifier: RiskClassifier,
    now: Optional[datetime] = None,
    lookback_days: Optional[int] = None,
) -> RiskAnalysisResult:
    """
    Assess the user's risk level from the trailing lookback window.
    Raises the classifier's upstream errors unchanged; never retries.
    """
    current = now or utcnow()
    since = current - timedelta(days=lookback_days or settings.RISK_LOOKBACK_DAYS)
    logger.info("Analyzing mental health data for user: %s", user_id)

    window = collect_window(db, user_id, since, current)
    counts = window.counts()
    if counts.is_empty:
        return no_data_result()

    assessment = classifier.classify(build_data_summary(window))
    result = RiskAnalysisResult(
        risk_level=assessment.risk_level,
        analysis_summary=assessment.analysis_summary,
        recommendations=assessment.recommendations,
        data_analyzed=counts,
        source=assessment.source,
    )
    if assessment.is_fallback:
        logger.info("Risk analysis complete: %s (fallback)", result.risk_level.value)
    else:
        logger.info("Risk analysis complete: %s", result.risk_level.value)
    return result
