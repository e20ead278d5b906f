"""Local mirror of upstream Classroom courses."""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import select

from datetime_utils import to_db, utc_now
from models.course import Course
from storage.db import SessionFactory, get_session, session_scope


class CourseStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    def get_by_google_id(self, user_id: str, google_course_id: str) -> Optional[Course]:
        with session_scope(self._session_factory) as session:
            stmt = select(Course).where(
                Course.user_id == user_id, Course.google_course_id == google_course_id
            )
            return session.exec(stmt).first()

    def list_for_user(self, user_id: str, *, sync_enabled_only: bool = False) -> List[Course]:
        with session_scope(self._session_factory) as session:
            stmt = select(Course).where(Course.user_id == user_id)
            if sync_enabled_only:
                stmt = stmt.where(Course.sync_enabled == True)  # noqa: E712
            return list(session.exec(stmt.order_by(Course.id)))

    def upsert(
        self,
        user_id: str,
        google_course_id: str,
        *,
        name: str,
        section: Optional[str],
        description: Optional[str],
        teacher_name: str,
    ) -> Course:
        """Insert or refresh the course keyed by (user, upstream id)."""
        with session_scope(self._session_factory) as session:
            stmt = select(Course).where(
                Course.user_id == user_id, Course.google_course_id == google_course_id
            )
            course = session.exec(stmt).first()
            if course is None:
                course = Course(user_id=user_id, google_course_id=google_course_id)
            course.name = name
            course.section = section
            course.description = description
            course.teacher_name = teacher_name
            course.updated_at = to_db(utc_now())
            session.add(course)
            session.commit()
            session.refresh(course)
            return course

    def set_sync_enabled(self, user_id: str, course_id: int, enabled: bool) -> Optional[Course]:
        with session_scope(self._session_factory) as session:
            course = session.get(Course, course_id)
            if course is None or course.user_id != user_id:
                return None
            course.sync_enabled = enabled
            course.updated_at = to_db(utc_now())
            session.add(course)
            session.commit()
            session.refresh(course)
            return course

    def delete_for_user(self, user_id: str) -> int:
        with session_scope(self._session_factory) as session:
            rows = list(session.exec(select(Course).where(Course.user_id == user_id)))
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)


__all__ = ["CourseStore"]
