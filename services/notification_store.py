"""Notification preferences and push token persistence."""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List

from sqlmodel import select

from datetime_utils import to_db, utc_now
from models.notification import NotificationPreference, PushToken
from storage.db import SessionFactory, get_session, session_scope


PREFERENCE_FIELDS = {
    "new_tasks_enabled",
    "class_reminders_enabled",
    "class_reminder_minutes",
    "gym_reminders_enabled",
    "activity_reminders_enabled",
    "task_due_24h_enabled",
    "task_due_1h_enabled",
    "quiet_hours_enabled",
    "quiet_hours_start",
    "quiet_hours_end",
}

HHMM = re.compile(r"([01]\d|2[0-3]):[0-5]\d")
REMINDER_MINUTES_RANGE = (5, 60)


def validate_preferences(fields: Dict[str, Any]) -> None:
    """Reject unknown fields and values the reminder engine cannot interpret."""
    unknown = set(fields) - PREFERENCE_FIELDS
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")
    for key in ("quiet_hours_start", "quiet_hours_end"):
        value = fields.get(key)
        if value is not None and not HHMM.fullmatch(str(value)):
            raise ValueError(f"{key} must be a zero-padded HH:MM time, got {value!r}")
    if "class_reminder_minutes" in fields:
        minutes = fields["class_reminder_minutes"]
        low, high = REMINDER_MINUTES_RANGE
        if isinstance(minutes, bool) or not isinstance(minutes, int) or not low <= minutes <= high:
            raise ValueError(f"class_reminder_minutes must be between {low} and {high}, got {minutes!r}")


class NotificationStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    # ----- preferences -----
    def get_preferences(self, user_id: str) -> NotificationPreference:
        """Stored preferences, or an unsaved all-enabled default."""
        with session_scope(self._session_factory) as session:
            stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
            prefs = session.exec(stmt).first()
            return prefs if prefs is not None else NotificationPreference(user_id=user_id)

    def update_preferences(self, user_id: str, **fields) -> NotificationPreference:
        validate_preferences(fields)
        with session_scope(self._session_factory) as session:
            stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
            prefs = session.exec(stmt).first() or NotificationPreference(user_id=user_id)
            for key, value in fields.items():
                setattr(prefs, key, value)
            session.add(prefs)
            session.commit()
            session.refresh(prefs)
            return prefs

    # ----- push tokens -----
    def active_tokens(self, user_id: str) -> List[PushToken]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(PushToken)
                .where(PushToken.user_id == user_id, PushToken.is_active == True)  # noqa: E712
                .order_by(PushToken.id)
            )
            return list(session.exec(stmt))

    def users_with_active_tokens(self) -> List[str]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(PushToken.user_id)
                .where(PushToken.is_active == True)  # noqa: E712
                .distinct()
                .order_by(PushToken.user_id)
            )
            return list(session.exec(stmt))

    def register_token(self, user_id: str, token: str, platform: str = "android") -> PushToken:
        """Upsert by token value; re-registering reactivates and re-owns the token."""
        with session_scope(self._session_factory) as session:
            row = session.exec(select(PushToken).where(PushToken.token == token)).first()
            if row is None:
                row = PushToken(token=token, user_id=user_id, platform=platform)
            row.user_id = user_id
            row.is_active = True
            row.updated_at = to_db(utc_now())
            session.add(row)
            session.commit()
            session.refresh(row)
            return row

    def unregister_token(self, user_id: str, token: str | None = None) -> int:
        """Deactivate ``token``, or every token of the user when omitted."""
        with session_scope(self._session_factory) as session:
            stmt = select(PushToken).where(PushToken.user_id == user_id)
            if token:
                stmt = stmt.where(PushToken.token == token)
            rows = list(session.exec(stmt))
            for row in rows:
                row.is_active = False
                row.updated_at = to_db(utc_now())
                session.add(row)
            session.commit()
            return len(rows)

    def deactivate_tokens(self, tokens: Iterable[str]) -> int:
        values = [t for t in tokens if t]
        if not values:
            return 0
        with session_scope(self._session_factory) as session:
            rows = list(session.exec(select(PushToken).where(PushToken.token.in_(values))))
            for row in rows:
                row.is_active = False
                row.updated_at = to_db(utc_now())
                session.add(row)
            session.commit()
            return len(rows)


__all__ = ["NotificationStore", "PREFERENCE_FIELDS", "validate_preferences"]
