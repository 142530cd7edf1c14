"""
Calendar-day helpers for streak bookkeeping.

Streaks count calendar days, not elapsed hours: 23:59 followed by 00:01 is a
one-day gap. Which calendar a day belongs to is decided by STREAK_TIMEZONE
(UTC unless configured otherwise).
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .config import settings


def streak_timezone(name: Optional[str] = None):
    tz_name = (name if name is not None else settings.STREAK_TIMEZONE).strip()
    if not tz_name or tz_name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown STREAK_TIMEZONE: {tz_name}") from exc


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def calendar_day(moment: datetime, tz=None) -> date:
    """Calendar day of an instant; naive datetimes are taken as UTC."""
    if tz is None:
        tz = streak_timezone()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def next_day_start(moment: datetime, tz=None) -> datetime:
    if tz is None:
        tz = streak_timezone()
    tomorrow = calendar_day(moment, tz) + timedelta(days=1)
    return datetime.combine(tomorrow, time.min, tzinfo=tz)


def parse_iso_day(raw_value: Any, tz=None) -> Optional[date]:
    """
    Parse "2024-01-10", "2024-01-10T18:30:00Z" or an offset date-time into a
    calendar day. Naive date-times are taken as UTC. Returns None for anything
    that is not a non-empty parseable string.
    """
    if not isinstance(raw_value, str):
        return None
    candidate = raw_value.strip()
    if not candidate:
        return None

    try:
        return date.fromisoformat(candidate)
    except ValueError:
        pass

    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    return calendar_day(parsed, tz)
