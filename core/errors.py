"""Error taxonomy shared by the sync and reminder jobs."""
from __future__ import annotations

from typing import Optional


class ReminderCoreError(RuntimeError):
    """Base class for every error raised by the sync / reminder core."""


class CredentialError(ReminderCoreError):
    """Stored Google credential is expired, invalid or could not be refreshed."""

    def __init__(self, user_id: str, message: str):
        super().__init__(f"{message} (user={user_id})")
        self.user_id = user_id


class NotConfigured(ReminderCoreError):
    """Account has no OAuth credential on file (missing link or email-only mode)."""

    def __init__(self, user_id: str, message: str = "OAuth not configured"):
        super().__init__(f"{message} (user={user_id})")
        self.user_id = user_id


class UpstreamFetchError(ReminderCoreError):
    """A Classroom API call failed."""

    def __init__(self, message: str, *, course_id: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.course_id = course_id
        self.status = status


class TransportError(ReminderCoreError):
    """The push gateway could not be reached or returned an unusable response."""


class PersistenceError(ReminderCoreError):
    """A database read or write failed."""


__all__ = [
    "ReminderCoreError",
    "CredentialError",
    "NotConfigured",
    "UpstreamFetchError",
    "TransportError",
    "PersistenceError",
]
