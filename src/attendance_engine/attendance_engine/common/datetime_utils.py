"""Time boundary helpers.

All persisted instants are timezone-aware UTC. Shift boundaries are configured
as local 12-hour strings ("9:00 AM") and are resolved against the wall clock of
the reference instant, so callers pass references already converted to the
business timezone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..core.exceptions import ConfigurationError

_SHIFT_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current UTC time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc)


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigurationError(f"Unknown business timezone: {name!r}") from exc


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (as read back from MySQL DATETIME) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_db(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_aware(value).astimezone(timezone.utc).replace(tzinfo=None)


def utc_date_key(instant: datetime) -> date:
    """UTC calendar date containing ``instant``; every record lookup keys on it."""
    return ensure_aware(instant).astimezone(timezone.utc).date()


def parse_shift_time(value: str) -> time:
    """Parse a strict ``H:MM AM|PM`` string.

    Raises ConfigurationError on anything else; there is no fallback value.
    """
    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid shift time: {value!r}. Expected 'h:mm AM/PM'")
    match = _SHIFT_TIME_RE.match(value.strip())
    if not match:
        raise ConfigurationError(f"Invalid shift time: {value!r}. Expected 'h:mm AM/PM'")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(3).upper()
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise ConfigurationError(f"Invalid shift time: {value!r}. Hour must be 1-12, minute 0-59")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return time(hour=hours, minute=minutes)


def format_shift_time(value: time) -> str:
    """Canonical 12-hour representation, e.g. time(9, 0) -> '9:00 AM'."""
    hour12 = value.hour % 12 or 12
    period = "AM" if value.hour < 12 else "PM"
    return f"{hour12}:{value.minute:02d} {period}"


def normalize_shift_time(value: str) -> str:
    return format_shift_time(parse_shift_time(value))


def shift_instant_on(time_of_day: time, reference: datetime) -> datetime:
    """``time_of_day`` on the calendar date of ``reference`` (its own wall clock)."""
    return reference.replace(hour=time_of_day.hour, minute=time_of_day.minute, second=0, microsecond=0)


def resolve_shift_instant(time_of_day: time, reference: datetime) -> datetime:
    """Next occurrence of ``time_of_day`` strictly after ``reference``.

    Rolls forward at most one calendar day (cross-midnight shifts), never more.
    """
    candidate = shift_instant_on(time_of_day, reference)
    if candidate <= reference:
        candidate += timedelta(days=1)
    return candidate


def is_overdue(check_in: datetime, shift_end: time, grace_minutes: int, *, now: datetime) -> bool:
    expected = resolve_shift_instant(shift_end, check_in)
    return now >= expected + timedelta(minutes=int(grace_minutes))


def hours_between(start: datetime, end: datetime) -> float:
    return round((end - start).total_seconds() / 3600, 2)


def end_of_day(instant: datetime) -> datetime:
    return instant.replace(hour=23, minute=59, second=59, microsecond=0)


def weekday_index(day: date) -> int:
    """0=Sunday .. 6=Saturday, matching the stored weekly-off configuration."""
    return day.isoweekday() % 7


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return first, last
