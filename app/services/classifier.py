"""
Risk classification client.

Sends the 7-day data summary to an OpenAI-compatible chat completions
endpoint and forces a single `assess_risk` function call.

Response decoding
-----------------
The completion body is validated with strict pydantic models. The outcome is
one of two variants:

  Assessment(source="tool_call")  — the forced call came back and matched
                                    the schema
  Assessment(source="fallback")   — 2xx response without a usable call
                                    (no tool_calls, bad JSON, unknown level …)

Failures
--------
No retries. 429 → RateLimitedError, 402 → QuotaExhaustedError, any other
non-2xx or transport error → UpstreamUnavailableError. A missing API key
raises ClassifierNotConfiguredError before any request is made.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.config import settings
from app.core.errors import (
    ClassifierNotConfiguredError,
    QuotaExhaustedError,
    RateLimitedError,
    UpstreamUnavailableError,
)
from app.models.risk_alert import RiskLevel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt + tool definition
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are a mental health risk assessment AI. Analyze the user's recent psychological data and determine their mental health risk level.

IMPORTANT: You are NOT diagnosing. You are identifying patterns that may indicate the user could benefit from support.

Risk Levels:
- low: User appears to be managing well, positive patterns
- moderate: Some concerning patterns, could benefit from self-care
- high: Multiple concerning patterns, should be encouraged to seek support
- critical: Urgent patterns suggesting the user may be in crisis

Look for:
- Persistent negative emotions (sadness, anxiety, anger)
- Cognitive distortions (catastrophizing, all-or-nothing thinking)
- Declining mood trend over time
- Keywords suggesting hopelessness, worthlessness, or self-harm
- Frequency and intensity of negative entries

Be compassionate but accurate. When in doubt, err on the side of caution."""

TOOL_NAME = "assess_risk"

ASSESS_RISK_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Provide mental health risk assessment",
        "parameters": {
            "type": "object",
            "properties": {
                "risk_level": {
                    "type": "string",
                    "enum": [level.value for level in RiskLevel],
                    "description": "The assessed risk level",
                },
                "analysis_summary": {
                    "type": "string",
                    "description": "A compassionate, brief summary for the user (2-3 sentences)",
                },
                "recommendations": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "3-5 specific, actionable recommendations",
                },
            },
            "required": ["risk_level", "analysis_summary", "recommendations"],
        },
    },
}


def build_user_prompt(data_summary: dict[str, Any]) -> str:
    return (
        "Analyze this mental health data from the past 7 days:\n\n"
        f"{json.dumps(data_summary, indent=2, ensure_ascii=False, default=str)}\n\n"
        "Provide your assessment."
    )


# ---------------------------------------------------------------------------
# Decoded result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Assessment:
    risk_level: RiskLevel
    analysis_summary: str
    recommendations: list[str] = field(default_factory=list)
    source: str = "tool_call"   # "tool_call" | "fallback"

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


FALLBACK_ASSESSMENT = Assessment(
    risk_level=RiskLevel.low,
    analysis_summary="Analysis completed. Continue taking care of yourself.",
    recommendations=["Keep logging your moods", "Practice self-care activities"],
    source="fallback",
)


# Strict shapes of the parts of the completion body we read.

class AssessmentPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    risk_level: RiskLevel
    analysis_summary: str = Field(min_length=1)
    recommendations: list[str] = Field(min_length=1)


class _ToolFunction(BaseModel):
    name: Optional[str] = None
    arguments: Union[str, dict[str, Any]]


class _ToolCall(BaseModel):
    function: _ToolFunction


class _Message(BaseModel):
    tool_calls: Optional[list[_ToolCall]] = None


class _Choice(BaseModel):
    message: _Message


class _Completion(BaseModel):
    choices: list[_Choice]


def decode_assessment(body: Any) -> Assessment:
    """Decode a chat completion body into an Assessment (never raises)."""
    try:
        completion = _Completion.model_validate(body)
    except ValidationError as exc:
        logger.warning("Classifier response has no usable choices: %s", exc.errors())
        return FALLBACK_ASSESSMENT

    if not completion.choices or not completion.choices[0].message.tool_calls:
        logger.warning("Classifier response carried no tool call; using fallback assessment")
        return FALLBACK_ASSESSMENT

    arguments = completion.choices[0].message.tool_calls[0].function.arguments
    try:
        if isinstance(arguments, str):
            payload = AssessmentPayload.model_validate_json(arguments)
        else:
            payload = AssessmentPayload.model_validate(arguments)
    except ValidationError as exc:
        logger.warning("Tool call arguments did not match schema: %s", exc.errors())
        return FALLBACK_ASSESSMENT

    return Assessment(
        risk_level=payload.risk_level,
        analysis_summary=payload.analysis_summary,
        recommendations=list(payload.recommendations),
        source="tool_call",
    )


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

class RiskClassifier:
    """Single-shot client for the classification service."""

    def __init__(
        self,
        api_url: str,
        api_key: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, transport: Optional[httpx.BaseTransport] = None) -> "RiskClassifier":
        return cls(
            api_url=settings.LLM_API_URL,
            api_key=settings.LLM_API_KEY,
            model=settings.LLM_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            transport=transport,
        )

    def build_request(self, data_summary: dict[str, Any]) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_user_prompt(data_summary)},
            ],
            "tools": [ASSESS_RISK_TOOL],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}},
        }

    def classify(self, data_summary: dict[str, Any]) -> Assessment:
        if not self.api_key:
            raise ClassifierNotConfiguredError()

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(
                    self.api_url,
                    headers=headers,
                    json=self.build_request(data_summary),
                )
        except httpx.HTTPError as exc:
            logger.error("Classifier request failed: %s", exc)
            raise UpstreamUnavailableError() from exc

        if response.status_code == 429:
            raise RateLimitedError()
        if response.status_code == 402:
            raise QuotaExhaustedError()
        if not response.is_success:
            logger.error("AI gateway error: %s %s", response.status_code, response.text)
            raise UpstreamUnavailableError(upstream_status=response.status_code)

        try:
            body = response.json()
        except ValueError:
            logger.warning("Classifier returned a non-JSON body; using fallback assessment")
            return FALLBACK_ASSESSMENT

        return decode_assessment(body)
