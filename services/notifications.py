"""Notification dispatcher: preference gating, quiet hours, batched push delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.clock import Clock, SystemClock
from core.log import get_logger
from datetime_utils import format_hhmm
from models.notification import NotificationPreference
from services.notification_store import NotificationStore
from services.push_gateway import ExpoPushGateway, PushGateway, PushMessage, PushTicket


@dataclass
class Notification:
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DeliveryReport:
    tickets: List[PushTicket] = field(default_factory=list)
    deactivated: List[str] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return sum(1 for ticket in self.tickets if ticket.ok)


def in_quiet_hours(prefs: NotificationPreference, current: str) -> bool:
    """Plain "HH:MM" string test: ``current >= start or current < end``.

    Matches a window that wraps past midnight (22:00-07:00). A window inside a
    single day (13:00-15:00) is not handled correctly; that is the current,
    known behaviour.
    """

    if not prefs.quiet_hours_enabled:
        return False
    start, end = prefs.quiet_hours_start, prefs.quiet_hours_end
    if not start or not end:
        return False
    return current >= start or current < end


class NotificationDispatcher:
    def __init__(
        self,
        store: Optional[NotificationStore] = None,
        gateway: Optional[PushGateway] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store or NotificationStore()
        self.gateway = gateway or ExpoPushGateway()
        self.clock = clock or SystemClock()
        self.logger = get_logger("notifications")

    def notify(
        self, user_id: str, message: Notification, *, now: Optional[datetime] = None
    ) -> Optional[DeliveryReport]:
        """Send ``message`` to every active device of the user.

        Only quiet hours are checked here, against ``now`` when the caller
        evaluates a tick for a given moment and the clock otherwise; category
        toggles belong to the ``notify_*`` helpers. Raises :class:`TransportError` when the gateway
        cannot be reached.
        """
        prefs = self.store.get_preferences(user_id)
        if in_quiet_hours(prefs, format_hhmm(now or self.clock.now())):
            self.logger.info("Skipping notification for %s - quiet hours", user_id)
            return None

        tokens = self.store.active_tokens(user_id)
        if not tokens:
            self.logger.info("No active tokens for user %s", user_id)
            return None

        messages = [
            PushMessage(to=token.token, title=message.title, body=message.body, data=dict(message.data))
            for token in tokens
        ]
        tickets = self.gateway.send(messages)

        dead = [ticket.token for ticket in tickets if ticket.device_not_registered]
        if dead:
            self.store.deactivate_tokens(dead)
            self.logger.info("Deactivated %d unregistered device(s) for user %s", len(dead), user_id)
        return DeliveryReport(tickets=tickets, deactivated=dead)

    # ------------------------------------------------------------------
    # Category helpers
    def notify_new_task(
        self,
        user_id: str,
        task_title: str,
        course_name: Optional[str] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[DeliveryReport]:
        if not self.store.get_preferences(user_id).new_tasks_enabled:
            return None
        return self.notify(
            user_id,
            Notification(
                title="📚 New Classroom assignment",
                body=f"{task_title} - {course_name}" if course_name else task_title,
                data={"type": "new_task"},
            ),
            now=now,
        )

    def notify_class_reminder(
        self, user_id: str, class_name: str, minutes_before: int, *, now: Optional[datetime] = None
    ) -> Optional[DeliveryReport]:
        if not self.store.get_preferences(user_id).class_reminders_enabled:
            return None
        return self.notify(
            user_id,
            Notification(
                title="📖 Class starting soon",
                body=f"{class_name} starts in {minutes_before} minutes",
                data={"type": "class_reminder"},
            ),
            now=now,
        )

    def notify_gym_reminder(self, user_id: str, *, now: Optional[datetime] = None) -> Optional[DeliveryReport]:
        if not self.store.get_preferences(user_id).gym_reminders_enabled:
            return None
        return self.notify(
            user_id,
            Notification(
                title="💪 Gym time",
                body="Your gym session starts soon",
                data={"type": "gym_reminder"},
            ),
            now=now,
        )

    def notify_activity_reminder(
        self, user_id: str, name: str, *, now: Optional[datetime] = None
    ) -> Optional[DeliveryReport]:
        if not self.store.get_preferences(user_id).activity_reminders_enabled:
            return None
        return self.notify(
            user_id,
            Notification(
                title="📝 Activity reminder",
                body=f"{name} starts soon",
                data={"type": "activity_reminder"},
            ),
            now=now,
        )

    def notify_task_due(
        self, user_id: str, task_title: str, hours_left: int, *, now: Optional[datetime] = None
    ) -> Optional[DeliveryReport]:
        prefs = self.store.get_preferences(user_id)
        if hours_left <= 1 and not prefs.task_due_1h_enabled:
            return None
        if hours_left > 1 and not prefs.task_due_24h_enabled:
            return None
        when = "in less than 1 hour!" if hours_left <= 1 else f"in {hours_left} hours"
        return self.notify(
            user_id,
            Notification(
                title="⏰ Task due soon",
                body=f'"{task_title}" is due {when}',
                data={"type": "task_due", "hours": hours_left},
            ),
            now=now,
        )

    def notify_test(self, user_id: str, *, now: Optional[datetime] = None) -> Optional[DeliveryReport]:
        return self.notify(
            user_id,
            Notification(
                title="🔔 Test notification",
                body="Push notifications are working.",
                data={"type": "test"},
            ),
            now=now,
        )


__all__ = ["DeliveryReport", "Notification", "NotificationDispatcher", "in_quiet_hours"]
