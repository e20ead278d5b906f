from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Treat naive values as UTC (that is how SQLite hands them back)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_db(dt: Optional[datetime]) -> Optional[datetime]:
    """Normalise a datetime for storage: aware UTC.

    Some drivers hand the value back naive, so readers still go through
    :func:`ensure_utc`.
    """
    return ensure_utc(dt)


# ----- "HH:MM" wall-clock helpers -----
def format_hhmm(moment: datetime | time) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"


def hhmm_to_minutes(value: str) -> Optional[int]:
    """Minutes since midnight for an ``HH:MM`` string, ``None`` when malformed."""

    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours * 60 + minutes


def sunday_based_weekday(moment: datetime | date) -> int:
    """Day of week with 0 = Sunday ... 6 = Saturday."""
    return (moment.weekday() + 1) % 7


def classroom_due_datetime(
    due_date: Optional[Mapping[str, Any]],
    due_time: Optional[Mapping[str, Any]],
    *,
    today: date,
    default_hour: int = 23,
    default_minute: int = 59,
) -> Optional[datetime]:
    """Build the UTC due moment from Classroom ``dueDate``/``dueTime`` objects.

    Classroom omits zero-valued fields, so a present ``dueTime`` with no
    ``hours`` means hour 0. A missing ``dueTime`` means end of day. A missing
    ``dueDate`` means the work has no due date at all.
    """

    if not due_date:
        return None
    year = int(due_date.get("year") or today.year)
    month = int(due_date.get("month") or today.month)
    day = int(due_date.get("day") or today.day)
    if due_time is None:
        hour, minute = default_hour, default_minute
    else:
        hour = int(due_time.get("hours") or 0)
        minute = int(due_time.get("minutes") or 0)
    try:
        return datetime(year, month, day, hour, minute, tzinfo=UTC)
    except ValueError:
        return None


__all__ = [
    "UTC",
    "classroom_due_datetime",
    "ensure_utc",
    "format_hhmm",
    "hhmm_to_minutes",
    "sunday_based_weekday",
    "to_db",
    "utc_now",
]
