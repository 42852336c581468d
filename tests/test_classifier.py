"""
Tests for the classification client.

Covered:
  - request shape: system prompt, data summary in the user message,
    forced assess_risk tool call
  - strict decode: valid tool call (string or object arguments)
  - fallback variant: no tool call, bad JSON, unknown level, empty choices,
    non-JSON body
  - upstream errors: 429 / 402 / other non-2xx / transport failure, no retry
  - missing API key → ClassifierNotConfiguredError before any request
"""
import httpx
import pytest

from app.core.errors import (
    ClassifierNotConfiguredError,
    QuotaExhaustedError,
    RateLimitedError,
    UpstreamUnavailableError,
)
from app.models.risk_alert import RiskLevel
from app.services.classifier import (
    FALLBACK_ASSESSMENT,
    SYSTEM_PROMPT,
    TOOL_NAME,
    RiskClassifier,
    decode_assessment,
)
from tests.factories import tool_call_body

_SUMMARY = {"mood_trend": [{"label": "Sad", "intensity": 5, "note": None, "ai_insight": None}]}


# ---------------------------------------------------------------------------
# decode_assessment
# ---------------------------------------------------------------------------

class TestDecodeAssessment:
    def test_valid_tool_call(self):
        result = decode_assessment(tool_call_body("high", summary="Tough week."))
        assert result.risk_level == RiskLevel.high
        assert result.analysis_summary == "Tough week."
        assert len(result.recommendations) == 3
        assert result.source == "tool_call"
        assert not result.is_fallback

    def test_arguments_as_object(self):
        body = tool_call_body("moderate")
        call = body["choices"][0]["message"]["tool_calls"][0]
        call["function"]["arguments"] = {
            "risk_level": "moderate",
            "analysis_summary": "Some stress.",
            "recommendations": ["Rest"],
        }
        result = decode_assessment(body)
        assert result.risk_level == RiskLevel.moderate
        assert result.recommendations == ["Rest"]

    def test_plain_text_reply_falls_back(self):
        body = {"choices": [{"message": {"role": "assistant", "content": "You seem fine."}}]}
        assert decode_assessment(body) == FALLBACK_ASSESSMENT

    def test_empty_choices_fall_back(self):
        assert decode_assessment({"choices": []}) == FALLBACK_ASSESSMENT

    def test_unexpected_body_falls_back(self):
        assert decode_assessment(["not", "a", "completion"]) == FALLBACK_ASSESSMENT

    def test_unparseable_arguments_fall_back(self):
        body = tool_call_body("high")
        body["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"] = "{not json"
        assert decode_assessment(body) == FALLBACK_ASSESSMENT

    def test_unknown_risk_level_falls_back(self):
        result = decode_assessment(tool_call_body("severe"))
        assert result.is_fallback
        assert result.risk_level == RiskLevel.low

    def test_missing_required_field_falls_back(self):
        body = tool_call_body("high")
        body["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"] = (
            '{"risk_level": "high", "recommendations": []}'
        )
        assert decode_assessment(body).is_fallback

    def test_empty_recommendations_fall_back(self):
        result = decode_assessment(tool_call_body("high", recommendations=[]))
        assert result == FALLBACK_ASSESSMENT

    def test_fallback_is_neutral(self):
        assert FALLBACK_ASSESSMENT.risk_level == RiskLevel.low
        assert FALLBACK_ASSESSMENT.analysis_summary == (
            "Analysis completed. Continue taking care of yourself."
        )


# ---------------------------------------------------------------------------
# RiskClassifier.classify
# ---------------------------------------------------------------------------

class TestClassify:
    def test_request_forces_tool_call(self, classifier, gateway):
        gateway.respond("moderate")
        classifier.classify(_SUMMARY)

        assert len(gateway.calls) == 1
        sent = gateway.calls[0]
        assert sent["model"] == "test-model"
        assert sent["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert sent["messages"][1]["role"] == "user"
        assert '"label": "Sad"' in sent["messages"][1]["content"]
        assert sent["tools"][0]["function"]["name"] == TOOL_NAME
        assert sent["tool_choice"] == {"type": "function", "function": {"name": TOOL_NAME}}
        params = sent["tools"][0]["function"]["parameters"]
        assert set(params["required"]) == {"risk_level", "analysis_summary", "recommendations"}
        assert params["properties"]["risk_level"]["enum"] == ["low", "moderate", "high", "critical"]

    def test_system_prompt_is_not_a_diagnosis(self):
        assert "NOT diagnosing" in SYSTEM_PROMPT
        assert "err on the side of caution" in SYSTEM_PROMPT

    def test_bearer_key_sent(self, gateway):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("authorization")
            return gateway.handler(request)

        c = RiskClassifier("https://llm.test/v1", "k-123", "m", transport=httpx.MockTransport(handler))
        c.classify(_SUMMARY)
        assert seen["auth"] == "Bearer k-123"

    def test_decoded_result(self, classifier, gateway):
        gateway.respond("critical")
        result = classifier.classify(_SUMMARY)
        assert result.risk_level == RiskLevel.critical
        assert result.source == "tool_call"

    def test_non_json_body_falls_back(self, classifier, gateway):
        gateway.raw = b"<html>oops</html>"
        assert classifier.classify(_SUMMARY) == FALLBACK_ASSESSMENT

    def test_429_is_rate_limited(self, classifier, gateway):
        gateway.fail(429)
        with pytest.raises(RateLimitedError):
            classifier.classify(_SUMMARY)
        assert len(gateway.calls) == 1

    def test_402_is_quota_exhausted(self, classifier, gateway):
        gateway.fail(402)
        with pytest.raises(QuotaExhaustedError):
            classifier.classify(_SUMMARY)

    def test_other_error_is_upstream_unavailable(self, classifier, gateway):
        gateway.fail(503)
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            classifier.classify(_SUMMARY)
        assert exc_info.value.details["upstream_status"] == 503
        assert len(gateway.calls) == 1

    def test_transport_error_is_upstream_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        c = RiskClassifier("https://llm.test/v1", "k", "m", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamUnavailableError):
            c.classify(_SUMMARY)

    def test_missing_key_makes_no_request(self, gateway):
        c = RiskClassifier("https://llm.test/v1", "", "m", transport=httpx.MockTransport(gateway.handler))
        with pytest.raises(ClassifierNotConfiguredError):
            c.classify(_SUMMARY)
        assert gateway.calls == []
