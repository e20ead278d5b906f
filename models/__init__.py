"""ORM models exposed by the reminders application."""
from .connection import Connection
from .course import Course
from .task import Task
from .schedule import ActivitySchedule, ClassSchedule, GymSchedule
from .notification import NotificationPreference, PushToken

__all__ = [
    "Connection",
    "Course",
    "Task",
    "ClassSchedule",
    "GymSchedule",
    "ActivitySchedule",
    "NotificationPreference",
    "PushToken",
]
