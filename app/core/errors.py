"""
Custom exception hierarchy for MindHaven.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages. The `error` key carries
the human-readable message for clients that only read a single string.
"""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class MindHavenException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {
            "error": self.message,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class NotAuthenticatedError(MindHavenException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message)


# --- Classification service --------------------------------------------------

class RateLimitedError(MindHavenException):
    http_status = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"

    def __init__(self):
        super().__init__(message="Rate limit exceeded. Please try again later.")


class QuotaExhaustedError(MindHavenException):
    http_status = status.HTTP_402_PAYMENT_REQUIRED
    code = "QUOTA_EXHAUSTED"

    def __init__(self):
        super().__init__(message="AI service quota exceeded.")


class UpstreamUnavailableError(MindHavenException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "UPSTREAM_UNAVAILABLE"

    def __init__(self, upstream_status: int | None = None):
        super().__init__(
            message="AI analysis failed",
            details={"upstream_status": upstream_status} if upstream_status else {},
        )


class ClassifierNotConfiguredError(MindHavenException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "CLASSIFIER_NOT_CONFIGURED"

    def __init__(self):
        super().__init__(message="LLM_API_KEY not configured")


# --- Persistence ---------------------------------------------------------------

class AlertPersistenceError(MindHavenException):
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "PERSISTENCE_FAILED"

    def __init__(self, reason: str | None = None):
        super().__init__(
            message="Risk alert could not be saved; the assessment was not recorded.",
            details={"reason": reason} if reason else {},
        )


# --- Not found -----------------------------------------------------------------

class RecordNotFoundError(MindHavenException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "RECORD_NOT_FOUND"

    def __init__(self, kind: str, record_id: int):
        super().__init__(
            message=f"{kind} {record_id} not found.",
            details={"kind": kind, "id": record_id},
        )


class CapsuleNotFoundError(MindHavenException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "CAPSULE_NOT_FOUND"

    def __init__(self, capsule_id: int):
        super().__init__(
            message=f"Time capsule {capsule_id} not found.",
            details={"id": capsule_id},
        )


class AlertNotFoundError(MindHavenException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "ALERT_NOT_FOUND"

    def __init__(self, alert_id: int):
        super().__init__(
            message=f"Risk alert {alert_id} not found.",
            details={"id": alert_id},
        )


# --- Conflicts -----------------------------------------------------------------

class MotivationalCapsuleExistsError(MindHavenException):
    http_status = status.HTTP_409_CONFLICT
    code = "MOTIVATIONAL_CAPSULE_EXISTS"

    def __init__(self, capsule_id: int | None = None):
        super().__init__(
            message="A self-care capsule already exists for this user.",
            details={"id": capsule_id} if capsule_id else {},
        )


class MotivationalCapsuleProtectedError(MindHavenException):
    http_status = status.HTTP_409_CONFLICT
    code = "MOTIVATIONAL_CAPSULE_PROTECTED"

    def __init__(self, capsule_id: int):
        super().__init__(
            message="The self-care capsule cannot be deleted.",
            details={"id": capsule_id},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def mindhaven_exception_handler(
    request: Request, exc: MindHavenException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Request validation failed.",
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "An unexpected error occurred.",
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
