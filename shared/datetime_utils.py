"""
Date/time helpers — framework-agnostic.

Every timestamp in the service is a timezone-aware UTC ``datetime``. MongoDB
returns naive datetimes unless the client is created with ``tz_aware=True``,
so values read back from the store go through :func:`ensure_utc`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return the current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime.

    Naive datetimes (no ``tzinfo``) are assumed to be UTC; aware ones are
    converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def seconds_since(moment: datetime, now: Optional[datetime] = None) -> float:
    """Seconds elapsed between *moment* and *now* (defaults to the current time)."""
    current = ensure_utc(now) if now is not None else utc_now()
    return (current - ensure_utc(moment)).total_seconds()
