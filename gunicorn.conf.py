"""
Gunicorn configuration for the MindHaven API.

Env vars that override defaults:
  PORT        — TCP port to bind (injected by the platform)
  WORKERS     — number of worker processes (default: 2)
  LOG_LEVEL   — gunicorn log level (default: info)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Risk checks block a worker for the whole classifier round trip.
workers = int(os.environ.get("WORKERS", "2"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Must stay above LLM_TIMEOUT_SECONDS (30 s) plus the four record reads.
timeout = 90

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
