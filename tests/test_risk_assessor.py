"""
Tests for the Risk Assessor.

Covered scenarios:
  B) no records in the window → low, fixed summary, zero counts, no call
  - only the trailing 7 days of the caller's own records are counted
  - the prompt summary truncates free text and passes structured fields
  - fallback decode still reports the real counts
  - upstream errors propagate unchanged (no retry)
  - POST /risk/assess persists nothing
"""
import logging
import threading
from datetime import timedelta

import pytest

from app.core.clock import utcnow
from app.core.errors import QuotaExhaustedError, RateLimitedError
from app.models.cbt_record import CBTRecord
from app.models.emotion_session import EmotionSession
from app.models.journal_entry import JournalEntry
from app.models.mood_entry import MoodEntry
from app.models.risk_alert import RiskAlert, RiskLevel
from app.services import risk_assessor
from app.services.risk_assessor import (
    LONG_TEXT,
    NO_DATA_SUMMARY,
    SHORT_TEXT,
    assess_risk,
    build_data_summary,
    collect_window,
)
from tests.factories import add_cbt, add_journal, add_mood, add_session, ago


def _seed_all_kinds(db, user_id):
    add_mood(db, user_id)
    add_journal(db, user_id)
    add_cbt(db, user_id)
    add_session(db, user_id)


# ---------------------------------------------------------------------------
# Fast path
# ---------------------------------------------------------------------------

class TestNoData:
    def test_empty_window_is_low_without_call(self, db, user_id, classifier, gateway):
        result = assess_risk(db, user_id, classifier)
        assert result.risk_level == RiskLevel.low
        assert result.analysis_summary == NO_DATA_SUMMARY
        assert result.recommendations == [
            "Log your mood daily",
            "Use the journal to express your thoughts",
        ]
        assert result.data_analyzed.as_dict() == {
            "cbt_entries": 0,
            "journal_entries": 0,
            "mood_entries": 0,
            "alchemist_sessions": 0,
        }
        assert result.source == "no_data"
        assert gateway.calls == []

    def test_records_older_than_window_do_not_count(self, db, user_id, classifier, gateway):
        add_mood(db, user_id, created_at=ago(days=8))
        add_journal(db, user_id, created_at=ago(days=30))
        result = assess_risk(db, user_id, classifier)
        assert result.data_analyzed.is_empty
        assert gateway.calls == []

    def test_endpoint_no_data(self, client, auth_headers, gateway):
        r = client.post("/risk/assess", headers=auth_headers)
        assert r.status_code == 200
        data = r.json()
        assert data["risk_level"] == "low"
        assert data["analysis_summary"].startswith("Not enough data")
        assert data["data_analyzed"] == {
            "cbt_entries": 0,
            "journal_entries": 0,
            "mood_entries": 0,
            "alchemist_sessions": 0,
        }
        assert gateway.calls == []


# ---------------------------------------------------------------------------
# Window collection
# ---------------------------------------------------------------------------

class TestCollectWindow:
    def test_reads_run_concurrently_on_worker_threads(self, db, user_id, monkeypatch):
        _seed_all_kinds(db, user_id)
        fetch = risk_assessor._fetch_kind
        barrier = threading.Barrier(4, timeout=5)
        seen = []

        def tracking_fetch(bind, model, *args):
            seen.append((model, threading.get_ident()))
            # all four reads must be in flight at once to get past the barrier
            barrier.wait()
            return fetch(bind, model, *args)

        monkeypatch.setattr(risk_assessor, "_fetch_kind", tracking_fetch)
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))

        assert {model for model, _ in seen} == {CBTRecord, JournalEntry, MoodEntry, EmotionSession}
        assert len({ident for _, ident in seen}) == 4
        assert threading.get_ident() not in {ident for _, ident in seen}
        assert window.counts().mood_entries == 1

    def test_counts_every_kind(self, db, user_id):
        _seed_all_kinds(db, user_id)
        add_mood(db, user_id, label="Anxious", intensity=3)
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        assert window.counts().as_dict() == {
            "cbt_entries": 1,
            "journal_entries": 1,
            "mood_entries": 2,
            "alchemist_sessions": 1,
        }

    def test_newest_first(self, db, user_id):
        add_mood(db, user_id, label="Monday", created_at=ago(days=5))
        add_mood(db, user_id, label="Friday", created_at=ago(days=1))
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        assert [m.mood_label for m in window.mood_entries] == ["Friday", "Monday"]

    def test_other_users_excluded(self, db, user_id):
        add_mood(db, user_id)
        add_mood(db, "someone-else")
        add_journal(db, "someone-else")
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        assert window.counts().mood_entries == 1
        assert window.counts().journal_entries == 0


# ---------------------------------------------------------------------------
# Prompt summary
# ---------------------------------------------------------------------------

class TestDataSummary:
    def test_free_text_truncated(self, db, user_id):
        add_mood(db, user_id, note="n" * 1000)
        add_journal(db, user_id, content="j" * 1000)
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        summary = build_data_summary(window)

        assert len(summary["mood_trend"][0]["note"]) == SHORT_TEXT
        assert len(summary["journal_excerpts"][0]["contentSnippet"]) == LONG_TEXT

    def test_structured_fields_pass_through(self, db, user_id):
        _seed_all_kinds(db, user_id)
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        summary = build_data_summary(window)

        assert summary["mood_trend"][0]["label"] == "Sad"
        assert summary["mood_trend"][0]["intensity"] == 5
        assert summary["cbt_patterns"][0]["distortions"] == ["all_or_nothing", "overgeneralization"]
        assert summary["cbt_patterns"][0]["thought"] == "I always fail at everything"
        assert summary["alchemist_inputs"][0]["input"] == "I feel stuck and alone"
        assert summary["journal_excerpts"][0]["title"] == "Today"

    def test_missing_text_stays_none(self, db, user_id):
        add_mood(db, user_id, note=None)
        window = collect_window(db, user_id, utcnow() - timedelta(days=7))
        assert build_data_summary(window)["mood_trend"][0]["note"] is None


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

class TestAssessRisk:
    def test_classified_result_carries_counts(self, db, user_id, classifier, gateway):
        _seed_all_kinds(db, user_id)
        gateway.respond("moderate", summary="Some heavy days this week.")
        result = assess_risk(db, user_id, classifier)

        assert result.risk_level == RiskLevel.moderate
        assert result.analysis_summary == "Some heavy days this week."
        assert result.data_analyzed.mood_entries == 1
        assert result.data_analyzed.alchemist_sessions == 1
        assert len(gateway.calls) == 1
        assert "I feel stuck and alone" in gateway.calls[0]["messages"][1]["content"]

    def test_fallback_keeps_counts(self, db, user_id, classifier, gateway, caplog):
        add_mood(db, user_id)
        gateway.body = {"choices": [{"message": {"content": "hello"}}]}
        with caplog.at_level(logging.INFO, logger="app.services.risk_assessor"):
            result = assess_risk(db, user_id, classifier)
        assert "Risk analysis complete: low (fallback)" in caplog.text
        assert result.risk_level == RiskLevel.low
        assert result.source == "fallback"
        assert result.data_analyzed.mood_entries == 1

    def test_rate_limit_propagates(self, db, user_id, classifier, gateway):
        add_mood(db, user_id)
        gateway.fail(429)
        with pytest.raises(RateLimitedError):
            assess_risk(db, user_id, classifier)
        assert len(gateway.calls) == 1

    def test_quota_propagates(self, db, user_id, classifier, gateway):
        add_mood(db, user_id)
        gateway.fail(402)
        with pytest.raises(QuotaExhaustedError):
            assess_risk(db, user_id, classifier)

    def test_explicit_now_moves_window(self, db, user_id, classifier, gateway):
        add_mood(db, user_id, created_at=ago(days=20))
        result = assess_risk(db, user_id, classifier, now=utcnow() - timedelta(days=18))
        assert result.data_analyzed.mood_entries == 1
        assert len(gateway.calls) == 1

    def test_assess_endpoint_persists_nothing(self, client, db, user_id, auth_headers, gateway):
        add_mood(db, user_id)
        gateway.respond("high")
        r = client.post("/risk/assess", headers=auth_headers)
        assert r.status_code == 200
        assert r.json()["risk_level"] == "high"
        assert db.query(RiskAlert).filter(RiskAlert.user_id == user_id).count() == 0
