"""General helper utilities."""

import math
import time
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _utcnow_iso() -> str:
    """ISO-8601 UTC timestamp with milliseconds, e.g. ``2025-01-01T00:00:00.000Z``."""
    try:
        return (
            _utcnow()
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
    except Exception:
        return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp or date as returned by the data service.

    Naive values are taken as UTC.  Raises ``ValueError`` on garbage.
    """
    s = (value or "").strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def days_until(end: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left until ``end``, rounded up (a partial day counts)."""
    now = now or _utcnow()
    return math.ceil((end - now).total_seconds() / SECONDS_PER_DAY)


def days_since(start: datetime, now: Optional[datetime] = None) -> int:
    """Whole days elapsed since ``start``, rounded down."""
    now = now or _utcnow()
    return math.floor((now - start).total_seconds() / SECONDS_PER_DAY)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def format_thousands(n: int) -> str:
    return f"{n:,}"
