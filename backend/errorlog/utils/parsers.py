# errorlog/utils/parsers.py
"""
Lenient parsing helpers for query-string values, plus timestamp formatting.

Every parser here returns a fallback instead of raising: listing endpoints
degrade gracefully on bad input.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from dateutil import parser as dtparser


# Largest value SQLite (and most SQL engines) accept for LIMIT / OFFSET
MAX_INT64 = 2**63 - 1


def clean(raw: Optional[str]) -> Optional[str]:
    """Strip a raw query value; empty strings count as absent."""
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def parse_int(raw: Optional[str], default: int) -> int:
    """
    Parse a non-negative integer from a query string.

    Absent, non-numeric ("abc", "12abc", "1.5") or negative values yield `default`.
    Values beyond the 64-bit range are clamped to MAX_INT64.
    """
    value = clean(raw)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    if parsed < 0:
        return default
    return min(parsed, MAX_INT64)


def parse_calendar_date(raw: Optional[str]) -> Optional[date]:
    """
    Parse an ISO-8601 date ("2024-01-31") or date-time and keep only the calendar day.

    Returns None if the value is absent or unparseable.
    """
    value = clean(raw)
    if value is None:
        return None
    try:
        return dtparser.isoparse(value).date()
    except (ValueError, OverflowError):
        return None


def _local_to_utc_naive(dt: datetime, tz: str) -> datetime:
    aware = dt.replace(tzinfo=ZoneInfo(tz))
    return aware.astimezone(timezone.utc).replace(tzinfo=None)


def day_start(d: date, tz: str = "UTC") -> datetime:
    """00:00:00.000 of `d` in `tz`, as naive UTC."""
    return _local_to_utc_naive(datetime.combine(d, time.min), tz)


def day_end(d: date, tz: str = "UTC") -> datetime:
    """23:59:59.999 of `d` in `tz`, as naive UTC (the whole day is included)."""
    return _local_to_utc_naive(datetime.combine(d, time(23, 59, 59, 999000)), tz)


def isoformat_z(dt: datetime) -> str:
    """Convert naive UTC datetime to ISO8601 with milliseconds and trailing 'Z'."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"
