# reminders/models/course.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from models.connection import _now_db


class Course(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "google_course_id", name="ux_course_user_google"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    google_course_id: str = Field(index=True)
    name: str = "Unnamed Course"
    section: Optional[str] = None
    description: Optional[str] = None
    teacher_name: str = ""
    color: Optional[str] = None
    sync_enabled: bool = True
    created_at: datetime = Field(default_factory=_now_db)
    updated_at: datetime = Field(default_factory=_now_db)


__all__ = ["Course"]
