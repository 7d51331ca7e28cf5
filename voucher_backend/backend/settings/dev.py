# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS
Safe + convenient defaults. Tests run against these (SQLite).
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import TESTING, VOUCHERS, env  # explicit for Ruff (F405)

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"])

CORS_ALLOWED_ORIGINS = env.list(
    "CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"]
)

CSRF_TRUSTED_ORIGINS = env.list(
    "CSRF_TRUSTED_ORIGINS", default=["http://localhost:5173"]
)

CORS_ALLOW_CREDENTIALS = True

# No real pauses between issuer calls while testing.
if TESTING:
    VOUCHERS["THROTTLE_PAUSE_SECONDS"] = 0.0
    VOUCHERS["RETRY_BACKOFF_SECONDS"] = 0.0
