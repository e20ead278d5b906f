# reminders/models/task.py
from typing import Optional
from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from core.priorities import DEFAULT_PRIORITY, PENDING
from models.connection import _now_db


class Task(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "google_task_id", name="ux_task_user_google"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    title: str
    description: Optional[str] = None
    status: str = PENDING             # PENDING / IN_PROGRESS / COMPLETED / LATE
    priority: str = DEFAULT_PRIORITY  # LOW / MEDIUM / HIGH
    due_at: Optional[datetime] = None
    is_from_classroom: bool = False
    google_task_id: Optional[str] = Field(default=None, index=True)
    course_id: Optional[int] = Field(default=None, foreign_key="course.id")
    notified_24h: bool = False
    notified_1h: bool = False
    created_at: datetime = Field(default_factory=_now_db)
    updated_at: datetime = Field(default_factory=_now_db)
