import logging

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.db.base import get_db
from app.core.config import settings
from app.routers import capsules as capsules_router
from app.routers import records as records_router
from app.routers import risk as risk_router
from app.core.errors import (
    MindHavenException,
    mindhaven_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

# --- Logging (stdout; gunicorn captures it alongside access logs) ---
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
# httpx logs every classifier request at INFO
logging.getLogger("httpx").setLevel(logging.WARNING)

app = FastAPI(
    title="MindHaven API",
    description=(
        "**Mental-wellness record store and risk monitor**\n\n"
        "Stores mood, journal, CBT and emotion-session records, runs a daily "
        "AI-assisted risk check over the last 7 days, and unlocks the user's "
        "self-care time capsule when the check comes back high or critical.\n\n"
        "All error responses follow the `{error, code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(MindHavenException, mindhaven_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(records_router.router)
app.include_router(capsules_router.router)
app.include_router(risk_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(db: Session = Depends(get_db)):
    """
    Returns `{"status": "ok", "db": "ok"}` when both the API and the database
    are reachable. Returns HTTP 503 if the DB is down. `classifier` reports
    whether an LLM API key is configured; risk checks fail with 500 without one.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception:
        db_status = "unreachable"

    if db_status != "ok":
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": db_status},
        )
    return {
        "status": "ok",
        "db": "ok",
        "classifier": "configured" if settings.LLM_API_KEY else "missing_key",
        "env": settings.APP_ENV,
    }
