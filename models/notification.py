"""Per-user notification preferences and registered push endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from models.connection import _now_db


class NotificationPreference(SQLModel, table=True):
    __tablename__ = "notification_preference"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(unique=True, index=True)
    new_tasks_enabled: bool = True
    class_reminders_enabled: bool = True
    class_reminder_minutes: int = 15
    gym_reminders_enabled: bool = True
    activity_reminders_enabled: bool = True
    task_due_24h_enabled: bool = True
    task_due_1h_enabled: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: Optional[str] = None  # HH:MM
    quiet_hours_end: Optional[str] = None    # HH:MM


class PushToken(SQLModel, table=True):
    __tablename__ = "push_token"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(unique=True, index=True)
    user_id: str = Field(index=True)
    platform: str = "android"  # ios / android
    is_active: bool = True
    created_at: datetime = Field(default_factory=_now_db)
    updated_at: datetime = Field(default_factory=_now_db)


__all__ = ["NotificationPreference", "PushToken"]
