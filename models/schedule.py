"""Recurring weekly slots: classes, gym sessions and other activities."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ScheduleSlot(SQLModel):
    """Columns shared by every weekly schedule table."""

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    name: str = ""
    day_of_week: int = Field(index=True, description="0 = Sunday ... 6 = Saturday")
    start_time: str = Field(description="HH:MM")
    end_time: str = Field(description="HH:MM")
    is_active: bool = True


class ClassSchedule(ScheduleSlot, table=True):
    __tablename__ = "class_schedule"

    room: Optional[str] = None
    course_id: Optional[int] = Field(default=None, foreign_key="course.id")


class GymSchedule(ScheduleSlot, table=True):
    __tablename__ = "gym_schedule"

    skipped_dates: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON),
        description="ISO dates whose occurrence is skipped",
    )

    def is_skipped_on(self, iso_date: str) -> bool:
        return iso_date in (self.skipped_dates or [])


class ActivitySchedule(ScheduleSlot, table=True):
    __tablename__ = "activity_schedule"


__all__ = ["ScheduleSlot", "ClassSchedule", "GymSchedule", "ActivitySchedule"]
