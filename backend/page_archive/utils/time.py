"""Time helpers."""

from __future__ import annotations

import time
from datetime import date, datetime, timezone

# 9999-12-31T23:59:59.999Z, the last instant datetime can represent.
MAX_TIMESTAMP_MS = 253_402_300_799_999


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def visit_date(timestamp_ms: int | None = None) -> str:
    """Return the UTC calendar date (``YYYY-MM-DD``) for a millisecond timestamp.

    Timestamps the platform cannot represent fall back to today.
    """
    if timestamp_ms is not None:
        try:
            return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            pass
    return utc_now().date().isoformat()


def to_unix_ms(value: object | None) -> int | None:
    """Best-effort conversion of a publication date to epoch millis."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, date):
        return to_unix_ms(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, (int, float)):
        # Values below 1e11 are treated as epoch seconds.
        try:
            return int(value * 1000) if abs(value) < 1e11 else int(value)
        except (OverflowError, ValueError):
            return None
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            return to_unix_ms(datetime.fromisoformat(candidate))
        except (OverflowError, ValueError):
            return None
    return None
