"""Clock abstraction so reminder windows can be evaluated against an explicit "now"."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from core.settings import REMINDERS
from datetime_utils import UTC, ensure_utc


class Clock(Protocol):
    def now(self) -> datetime:
        """Current moment as a timezone-aware datetime in the local zone."""


class SystemClock:
    def __init__(self, tz_name: str = REMINDERS.timezone) -> None:
        self._tz = ZoneInfo(tz_name)

    @property
    def tz(self):
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """Clock frozen at a given moment; ``advance`` moves it forward."""

    def __init__(self, moment: datetime, tz_name: str = "UTC") -> None:
        tz = ZoneInfo(tz_name)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=tz)
        self._now = moment.astimezone(tz)

    def now(self) -> datetime:
        return self._now

    def set(self, moment: datetime) -> None:
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self._now.tzinfo)
        self._now = moment.astimezone(self._now.tzinfo)

    def advance(self, **delta) -> datetime:
        self._now = self._now + timedelta(**delta)
        return self._now


def utc_of(clock: Clock) -> datetime:
    return ensure_utc(clock.now()) or datetime.now(UTC)


__all__ = ["Clock", "SystemClock", "FixedClock", "utc_of"]
