"""Environment-driven configuration.

Fixed governance parameters live here as module constants; anything an
operator may tune is read from the environment at call time so tests can
patch ``os.environ``.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

# Sliding-window limits: (max admissions, window in milliseconds)
DRIVE_RATE_LIMIT = (10, 1000)
GMAIL_RATE_LIMIT = (5, 1000)
BULK_RATE_LIMIT = (3, 60000)

MAX_BULK_ITEMS = 1000
MAX_SELECTION_ITEMS = 100
LARGE_BATCH_THRESHOLD = 100
ORGANIZE_BATCH_SIZE = 10

OAUTH_STATE_EXPIRY_MS = 10 * 60 * 1000
BOOTSTRAP_TIMEOUT_SECONDS = 30.0

MIN_AGE_DAYS = 1
MAX_AGE_DAYS = 3650
DEFAULT_AGE_DAYS = 365

GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/gmail.modify",
]


def is_development() -> bool:
    """Check if the app runs in development mode (verbose error detail)."""
    return os.getenv("APP_ENV", "production").lower() in ("development", "dev")


def _parse_limit(name: str, default: tuple[int, int]) -> tuple[int, int]:
    """Parse a ``MAX/WINDOW_MS`` override such as ``"20/1000"``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        max_requests, window_ms = (int(part) for part in raw.split("/", 1))
    except ValueError:
        logger.warning("Invalid %s value %r, using default %s", name, raw, default)
        return default
    if max_requests < 1 or window_ms < 1:
        logger.warning("Invalid %s value %r, using default %s", name, raw, default)
        return default
    return max_requests, window_ms


def get_rate_limits() -> dict[str, tuple[int, int]]:
    """Get per-family rate limits, honouring env overrides."""
    return {
        "drive": _parse_limit("DRIVE_RATE_LIMIT", DRIVE_RATE_LIMIT),
        "gmail": _parse_limit("GMAIL_RATE_LIMIT", GMAIL_RATE_LIMIT),
        "bulk": _parse_limit("BULK_RATE_LIMIT", BULK_RATE_LIMIT),
    }


def get_oauth_port() -> int:
    """Get the local OAuth callback port (default 3000)."""
    try:
        return int(os.getenv("OAUTH_PORT", "3000"))
    except ValueError:
        logger.warning("Invalid OAUTH_PORT value, using default 3000")
        return 3000


__all__ = [
    "DRIVE_RATE_LIMIT",
    "GMAIL_RATE_LIMIT",
    "BULK_RATE_LIMIT",
    "MAX_BULK_ITEMS",
    "MAX_SELECTION_ITEMS",
    "LARGE_BATCH_THRESHOLD",
    "ORGANIZE_BATCH_SIZE",
    "OAUTH_STATE_EXPIRY_MS",
    "BOOTSTRAP_TIMEOUT_SECONDS",
    "MIN_AGE_DAYS",
    "MAX_AGE_DAYS",
    "DEFAULT_AGE_DAYS",
    "GOOGLE_SCOPES",
    "is_development",
    "get_rate_limits",
    "get_oauth_port",
]
