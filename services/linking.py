"""Linking and unlinking a Google Classroom account."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

from core.clock import utc_of
from core.log import get_logger
from models.connection import Connection
from models.course import Course
from services.classroom_sync import ClassroomSync
from services.connection_store import ConnectionStore


class AlreadyLinked(ValueError):
    pass


@dataclass
class LinkResult:
    connection: Connection
    courses: List[Course]

    @property
    def mode(self) -> str:
        return self.connection.mode


class AccountLinking:
    def __init__(self, sync: ClassroomSync, connections: Optional[ConnectionStore] = None) -> None:
        self.sync = sync
        self.credentials = sync.credentials
        self.connections = connections or self.credentials.store
        self.logger = get_logger("linking")

    def _ensure_unlinked(self, user_id: str) -> None:
        if self.connections.get(user_id) is not None:
            raise AlreadyLinked("Google account already connected. Disconnect first.")

    def link_email_only(self, user_id: str, google_email: str) -> LinkResult:
        """Record the address only; such accounts are never synced automatically."""
        self._ensure_unlinked(user_id)
        connection = self.connections.create(
            user_id, google_email=google_email, sync_enabled=False
        )
        self.logger.info("Linked user %s in email-only mode", user_id)
        return LinkResult(connection=connection, courses=[])

    def authorization_url(self, user_id: str) -> str:
        """Consent URL whose code is later handed to :meth:`link_oauth`."""
        self._ensure_unlinked(user_id)
        return self.credentials.authorization_url()

    def link_oauth(self, user_id: str, auth_code: str) -> LinkResult:
        self._ensure_unlinked(user_id)
        issued = self.credentials.exchange_code(auth_code)
        now = utc_of(self.credentials.clock)
        connection = self.connections.create(
            user_id,
            access_token=issued.access_token,
            refresh_token=issued.refresh_token or "",
            token_expiry=issued.expiry
            or now + timedelta(seconds=self.credentials.settings.default_token_lifetime_sec),
            sync_enabled=True,
        )
        courses = self.sync.sync_courses(user_id)
        self.logger.info("Linked user %s via OAuth, %d courses imported", user_id, len(courses))
        return LinkResult(connection=connection, courses=courses)

    def unlink(self, user_id: str) -> None:
        self.connections.delete(user_id)
        removed = self.sync.courses.delete_for_user(user_id)
        self.logger.info("Unlinked user %s, removed %d courses", user_id, removed)


__all__ = ["AccountLinking", "AlreadyLinked", "LinkResult"]
