"""Persistence helpers for local tasks and their due-reminder flags."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlmodel import select

from core.priorities import OPEN_STATUSES
from datetime_utils import to_db, utc_now
from models.task import Task
from storage.db import SessionFactory, get_session, session_scope


NOTIFIED_FLAGS = {
    "24h": "notified_24h",
    "1h": "notified_1h",
}


class TaskStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    def get(self, task_id: int) -> Optional[Task]:
        with session_scope(self._session_factory) as session:
            return session.get(Task, task_id)

    def find_by_google_id(self, user_id: str, google_task_id: str) -> Optional[Task]:
        if not google_task_id:
            return None
        with session_scope(self._session_factory) as session:
            stmt = select(Task).where(Task.user_id == user_id, Task.google_task_id == google_task_id)
            return session.exec(stmt).first()

    def add(self, user_id: str, **fields) -> Task:
        if "due_at" in fields:
            fields["due_at"] = to_db(fields["due_at"])
        with session_scope(self._session_factory) as session:
            task = Task(user_id=user_id, **fields)
            session.add(task)
            session.commit()
            session.refresh(task)
            return task

    def list_for_user(self, user_id: str) -> List[Task]:
        with session_scope(self._session_factory) as session:
            stmt = select(Task).where(Task.user_id == user_id).order_by(Task.id)
            return list(session.exec(stmt))

    def count_from_classroom(self, user_id: str) -> int:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(func.count())
                .select_from(Task)
                .where(Task.user_id == user_id, Task.is_from_classroom == True)  # noqa: E712
            )
            return int(session.exec(stmt).one())

    def list_due_candidates(self, user_id: str) -> List[Task]:
        """Open tasks that carry a due date."""
        with session_scope(self._session_factory) as session:
            stmt = (
                select(Task)
                .where(Task.user_id == user_id)
                .where(Task.due_at.is_not(None))
                .where(Task.status.in_(OPEN_STATUSES))
                .order_by(Task.due_at)
            )
            return list(session.exec(stmt))

    def mark_notified(self, task_id: int, window: str) -> bool:
        """Set the one-way notified flag for ``window`` ("24h" or "1h")."""
        attribute = NOTIFIED_FLAGS.get(window)
        if attribute is None:
            raise ValueError(f"Unsupported reminder window: {window}")
        with session_scope(self._session_factory) as session:
            task = session.get(Task, task_id)
            if task is None:
                return False
            if getattr(task, attribute):
                return False
            setattr(task, attribute, True)
            task.updated_at = to_db(utc_now())
            session.add(task)
            session.commit()
            return True


__all__ = ["TaskStore", "NOTIFIED_FLAGS"]
