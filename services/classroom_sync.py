"""Mirror Google Classroom courses and course work into local records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.clock import Clock, SystemClock, utc_of
from core.errors import UpstreamFetchError
from core.log import get_logger
from core.priorities import priority_for_due
from core.settings import SYNC, SyncSettings
from datetime_utils import classroom_due_datetime
from models.course import Course
from models.task import Task
from services.course_store import CourseStore
from services.google_auth import CredentialManager
from services.google_classroom import ClassroomClient, owner_full_name
from services.task_store import TaskStore


@dataclass
class NewTasksResult:
    count: int = 0
    tasks: List[Task] = field(default_factory=list)

    @property
    def has_new(self) -> bool:
        return self.count > 0


class ClassroomSync:
    """Course upsert plus create-only task import for one account at a time.

    Tasks imported from Classroom are never rewritten by later passes; edits
    made upstream after the first import are intentionally not propagated.
    """

    def __init__(
        self,
        credentials: CredentialManager,
        courses: Optional[CourseStore] = None,
        tasks: Optional[TaskStore] = None,
        *,
        clock: Optional[Clock] = None,
        settings: SyncSettings = SYNC,
    ) -> None:
        self.credentials = credentials
        self.courses = courses or CourseStore()
        self.tasks = tasks or TaskStore()
        self.clock = clock or SystemClock()
        self.settings = settings
        self.logger = get_logger("sync")

    # ------------------------------------------------------------------
    # Courses
    def sync_courses(self, user_id: str, client: Optional[ClassroomClient] = None) -> List[Course]:
        client = client or self.credentials.get_valid_client(user_id)
        synced: List[Course] = []
        for remote in client.list_active_courses():
            course_id = remote.get("id")
            if not course_id:
                continue
            synced.append(
                self.courses.upsert(
                    user_id,
                    course_id,
                    name=remote.get("name") or "Unnamed Course",
                    section=remote.get("section"),
                    description=remote.get("description"),
                    teacher_name=self._teacher_name(client, remote),
                )
            )
        self.logger.info("Synced %d courses for user %s", len(synced), user_id)
        return synced

    def _teacher_name(self, client: ClassroomClient, remote: Dict) -> str:
        try:
            teachers = client.list_teachers(remote["id"])
        except UpstreamFetchError as exc:
            self.logger.debug("Teacher lookup failed for course %s: %s", remote.get("id"), exc)
            return ""
        return owner_full_name(remote, teachers)

    # ------------------------------------------------------------------
    # Tasks
    def sync_tasks(
        self,
        user_id: str,
        client: Optional[ClassroomClient] = None,
        on_created: Optional[Callable[[Task], None]] = None,
    ) -> List[Task]:
        """Import course work not seen before; returns only the tasks created now.

        ``on_created`` sees each task right after its row is committed, so
        work imported before a later failure is still reported.
        """
        client = client or self.credentials.get_valid_client(user_id)
        created: List[Task] = []
        for course in self.courses.list_for_user(user_id, sync_enabled_only=True):
            try:
                assignments = client.list_assignments(course.google_course_id)
            except Exception as exc:
                self.logger.error(
                    "Error syncing course %s (%s) for user %s: %s",
                    course.name,
                    course.google_course_id,
                    user_id,
                    exc,
                    exc_info=not isinstance(exc, UpstreamFetchError),
                )
                continue
            for work in assignments:
                task = self._import_work(user_id, course, work)
                if task is not None:
                    created.append(task)
                    if on_created is not None:
                        on_created(task)
        return created

    def _import_work(self, user_id: str, course: Course, work: Dict) -> Optional[Task]:
        work_id = work.get("id")
        if not work_id:
            return None
        if self.tasks.find_by_google_id(user_id, work_id) is not None:
            return None

        now = utc_of(self.clock)
        due_at = classroom_due_datetime(
            work.get("dueDate"),
            work.get("dueTime"),
            today=now.date(),
            default_hour=self.settings.default_due_hour,
            default_minute=self.settings.default_due_minute,
        )
        return self.tasks.add(
            user_id,
            title=work.get("title") or "Untitled Task",
            description=work.get("description"),
            is_from_classroom=True,
            google_task_id=work_id,
            course_id=course.id,
            due_at=due_at,
            priority=priority_for_due(
                due_at, now, window_hours=self.settings.high_priority_window_hours
            ),
        )

    def check_for_new_tasks(
        self,
        user_id: str,
        client: Optional[ClassroomClient] = None,
        on_created: Optional[Callable[[Task], None]] = None,
    ) -> NewTasksResult:
        before = self.tasks.count_from_classroom(user_id)
        created = self.sync_tasks(user_id, client, on_created)
        after = self.tasks.count_from_classroom(user_id)
        return NewTasksResult(count=max(after - before, 0), tasks=created)


__all__ = ["ClassroomSync", "NewTasksResult"]
