"""
Domain time utilities (pure).

Centralized timestamp validation helper plus the quota window calculator.

Quota windows are UTC-aligned:
- day: 00:00 UTC of the reference instant's date
- week: Monday 00:00 UTC of the week containing the reference instant
  (a Sunday belongs to the week that started the previous Monday)
- year: January 1st 00:00 UTC
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces the contract requirement that timestamps are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def parse_utc_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a Supabase timestamp into a timezone-aware UTC datetime.

    Supabase commonly returns ISO-8601 strings, sometimes with a trailing 'Z'.
    Date-only values and naive timestamps are interpreted as UTC. Anything that
    cannot be parsed yields None.
    """

    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware (UTC)")
    return now.astimezone(timezone.utc)


def day_start(now: datetime) -> datetime:
    """Start of the UTC day containing `now`."""

    return _as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)


def week_start(now: datetime) -> datetime:
    """Start of the ISO week (Monday 00:00 UTC) containing `now`."""

    start_of_day = day_start(now)
    return start_of_day - timedelta(days=start_of_day.weekday())


def year_start(now: datetime) -> datetime:
    """Start of the UTC calendar year containing `now`."""

    return day_start(now).replace(month=1, day=1)


@dataclass(frozen=True, slots=True)
class QuotaWindows:
    """Start instants of the day, week and year quota windows."""

    day_start: datetime
    week_start: datetime
    year_start: datetime


def quota_windows(now: datetime) -> QuotaWindows:
    return QuotaWindows(
        day_start=day_start(now),
        week_start=week_start(now),
        year_start=year_start(now),
    )


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
