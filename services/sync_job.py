"""Periodic Classroom sync across every connected account."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.clock import Clock, SystemClock, utc_of
from core.errors import ReminderCoreError, TransportError
from core.log import get_logger
from models.connection import Connection
from models.task import Task
from services.classroom_sync import ClassroomSync
from services.connection_store import ConnectionStore
from services.course_store import CourseStore
from services.notifications import NotificationDispatcher


@dataclass
class SyncReport:
    processed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    new_tasks: Dict[str, int] = field(default_factory=dict)

    @property
    def total_new(self) -> int:
        return sum(self.new_tasks.values())


class SyncJob:
    def __init__(
        self,
        sync: ClassroomSync,
        dispatcher: NotificationDispatcher,
        connections: Optional[ConnectionStore] = None,
        courses: Optional[CourseStore] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.sync = sync
        self.dispatcher = dispatcher
        self.connections = connections or ConnectionStore()
        self.courses = courses or sync.courses
        self.clock = clock or SystemClock()
        self.logger = get_logger("sync")

    def run(self) -> SyncReport:
        report = SyncReport()
        connections = self.connections.list_syncable()
        self.logger.info("Processing %d users...", len(connections))

        for connection in connections:
            try:
                created = self.sync_account(connection)
            except ReminderCoreError as exc:
                self.logger.error("Error syncing user %s: %s", connection.user_id, exc)
                report.failed[connection.user_id] = str(exc)
                continue
            except Exception as exc:  # pragma: no cover
                self.logger.exception("Unexpected error syncing user %s", connection.user_id)
                report.failed[connection.user_id] = str(exc)
                continue
            report.processed.append(connection.user_id)
            if created:
                report.new_tasks[connection.user_id] = created
        return report

    def sync_account(self, connection: Connection) -> int:
        """Sync one account; returns the number of new tasks found."""
        user_id = connection.user_id
        client = self.sync.credentials.get_valid_client(user_id)
        self.sync.sync_courses(user_id, client)
        names = {course.id: course.name for course in self.courses.list_for_user(user_id)}
        # course-level fetch failures are absorbed here, so reaching the
        # timestamp update means the pass completed, possibly partially
        result = self.sync.check_for_new_tasks(
            user_id, client, on_created=lambda task: self._announce(user_id, task, names)
        )
        if result.has_new:
            self.logger.info("Found %d new tasks for user %s", result.count, user_id)

        self.connections.mark_synced(user_id, utc_of(self.clock))
        return result.count

    def _announce(self, user_id: str, task: Task, course_names: Dict[int, str]) -> None:
        try:
            self.dispatcher.notify_new_task(user_id, task.title, course_names.get(task.course_id))
        except TransportError as exc:
            self.logger.warning(
                "New task notification failed for user %s task %s: %s", user_id, task.id, exc
            )


__all__ = ["SyncJob", "SyncReport"]
