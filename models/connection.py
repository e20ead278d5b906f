# reminders/models/connection.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from datetime_utils import UTC, to_db, utc_now


def _now_db() -> datetime:
    return to_db(utc_now())


class Connection(SQLModel, table=True):
    """A user's link to Google Classroom together with its OAuth credential."""

    __tablename__ = "classroom_connection"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True)
    google_email: Optional[str] = None
    access_token: str = ""        # empty in email-only mode
    refresh_token: str = ""
    token_expiry: datetime = Field(default_factory=lambda: datetime(1970, 1, 1, tzinfo=UTC))
    sync_enabled: bool = True
    last_sync_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_now_db)

    @property
    def has_oauth(self) -> bool:
        return bool(self.access_token)

    @property
    def mode(self) -> str:
        return "oauth" if self.has_oauth else "email-only"


__all__ = ["Connection"]
