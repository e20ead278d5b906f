"""Task priority and status vocabulary."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from datetime_utils import ensure_utc

LOW = "LOW"
MEDIUM = "MEDIUM"
HIGH = "HIGH"

PRIORITIES = (LOW, MEDIUM, HIGH)
DEFAULT_PRIORITY = MEDIUM

PENDING = "PENDING"
IN_PROGRESS = "IN_PROGRESS"
COMPLETED = "COMPLETED"
LATE = "LATE"

# statuses that still deserve a due-date reminder
OPEN_STATUSES = (PENDING, IN_PROGRESS)


def priority_for_due(due: Optional[datetime], moment: datetime, *, window_hours: int = 24) -> str:
    """HIGH when the work is due before ``moment + window_hours`` (overdue included)."""
    if due is None:
        return MEDIUM
    if ensure_utc(due) < ensure_utc(moment) + timedelta(hours=window_hours):
        return HIGH
    return MEDIUM


__all__ = [
    "LOW",
    "MEDIUM",
    "HIGH",
    "PRIORITIES",
    "DEFAULT_PRIORITY",
    "PENDING",
    "IN_PROGRESS",
    "COMPLETED",
    "LATE",
    "OPEN_STATUSES",
    "priority_for_due",
]
