"""Periodic evaluation of schedule and due-date reminder windows."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from core.clock import Clock, SystemClock
from core.errors import ReminderCoreError, TransportError
from core.log import get_logger
from core.settings import REMINDERS, ReminderSettings
from datetime_utils import ensure_utc, hhmm_to_minutes, sunday_based_weekday
from models.notification import NotificationPreference
from models.task import Task
from services.notification_store import NotificationStore
from services.notifications import NotificationDispatcher
from services.schedule_store import ScheduleStore
from services.task_store import TaskStore


def minutes_until(start_time: str, now: datetime) -> Optional[int]:
    target = hhmm_to_minutes(start_time)
    if target is None:
        return None
    return target - (now.hour * 60 + now.minute)


def within_lead_time(start_time: str, now: datetime, lead_minutes: int) -> bool:
    """True when ``start_time`` is strictly ahead of ``now`` by at most ``lead_minutes``."""
    diff = minutes_until(start_time, now)
    return diff is not None and 0 < diff <= lead_minutes


def due_window(hours_until_due: float) -> Optional[str]:
    if 0 < hours_until_due <= 1:
        return "1h"
    if 23 < hours_until_due <= 24:
        return "24h"
    return None


@dataclass
class ReminderReport:
    users: int = 0
    sent: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    def bump(self, category: str) -> None:
        self.sent[category] = self.sent.get(category, 0) + 1


class ReminderJob:
    """Fires class / gym / activity / due-date reminders for the current tick.

    Schedule reminders keep no per-occurrence memory: every tick that still
    falls inside the lead window fires again. Due-date reminders are guarded
    by the task's one-way notified flags and fire at most once per window.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        notifications: Optional[NotificationStore] = None,
        schedules: Optional[ScheduleStore] = None,
        tasks: Optional[TaskStore] = None,
        *,
        clock: Optional[Clock] = None,
        settings: ReminderSettings = REMINDERS,
    ) -> None:
        self.dispatcher = dispatcher
        self.notifications = notifications or dispatcher.store
        self.schedules = schedules or ScheduleStore()
        self.tasks = tasks or TaskStore()
        self.clock = clock or SystemClock()
        self.settings = settings
        self.logger = get_logger("reminders")

    def run(self, now: Optional[datetime] = None) -> ReminderReport:
        now = now or self.clock.now()
        report = ReminderReport()
        for user_id in self.notifications.users_with_active_tokens():
            report.users += 1
            try:
                self.check_user(user_id, now, report)
            except ReminderCoreError as exc:
                self.logger.error("Reminder check failed for user %s: %s", user_id, exc)
                report.failed[user_id] = str(exc)
            except Exception as exc:  # pragma: no cover
                self.logger.exception("Unexpected reminder error for user %s", user_id)
                report.failed[user_id] = str(exc)
        return report

    def check_user(self, user_id: str, now: datetime, report: ReminderReport) -> None:
        prefs = self.notifications.get_preferences(user_id)
        self._schedule_reminders(user_id, prefs, now, report)
        self._task_due_reminders(user_id, prefs, now, report)

    # ------------------------------------------------------------------
    def _schedule_reminders(
        self, user_id: str, prefs: NotificationPreference, now: datetime, report: ReminderReport
    ) -> None:
        today = sunday_based_weekday(now)
        today_iso = now.date().isoformat()

        if prefs.class_reminders_enabled:
            lead = prefs.class_reminder_minutes or self.settings.class_lead_minutes
            for entry in self.schedules.classes_for_day(user_id, today):
                if within_lead_time(entry.start_time, now, lead):
                    self._send(report, "class", user_id, entry.name, now,
                               self.dispatcher.notify_class_reminder, user_id, entry.name, lead)

        if prefs.gym_reminders_enabled:
            for entry in self.schedules.gym_for_day(user_id, today):
                if entry.is_skipped_on(today_iso):
                    continue
                if within_lead_time(entry.start_time, now, self.settings.gym_lead_minutes):
                    self._send(report, "gym", user_id, entry.name, now,
                               self.dispatcher.notify_gym_reminder, user_id)

        if prefs.activity_reminders_enabled:
            for entry in self.schedules.activities_for_day(user_id, today):
                if within_lead_time(entry.start_time, now, self.settings.activity_lead_minutes):
                    self._send(report, "activity", user_id, entry.name, now,
                               self.dispatcher.notify_activity_reminder, user_id, entry.name)

    def _send(
        self, report: ReminderReport, category: str, user_id: str, label: str, now: datetime, fn, *args
    ) -> bool:
        try:
            fn(*args, now=now)
        except TransportError as exc:
            self.logger.warning("%s reminder for user %s (%s) not delivered: %s", category, user_id, label, exc)
            return False
        report.bump(category)
        return True

    # ------------------------------------------------------------------
    def _task_due_reminders(
        self, user_id: str, prefs: NotificationPreference, now: datetime, report: ReminderReport
    ) -> None:
        now_utc = ensure_utc(now)
        for task in self.tasks.list_due_candidates(user_id):
            hours_until_due = (ensure_utc(task.due_at) - now_utc).total_seconds() / 3600
            window = due_window(hours_until_due)
            if window is None:
                continue
            self._due_reminder(user_id, prefs, task, window, now, report)

    def _due_reminder(
        self,
        user_id: str,
        prefs: NotificationPreference,
        task: Task,
        window: str,
        now: datetime,
        report: ReminderReport,
    ) -> None:
        if window == "1h":
            enabled, already, hours = prefs.task_due_1h_enabled, task.notified_1h, 1
        else:
            enabled, already, hours = prefs.task_due_24h_enabled, task.notified_24h, 24
        if already or not enabled:
            return
        # the flag is only set once the gateway accepted the batch
        if self._send(report, f"task_due_{window}", user_id, task.title, now,
                      self.dispatcher.notify_task_due, user_id, task.title, hours):
            self.tasks.mark_notified(task.id, window)


__all__ = ["ReminderJob", "ReminderReport", "due_window", "within_lead_time"]
