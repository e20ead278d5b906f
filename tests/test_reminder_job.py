from datetime import datetime, timedelta, timezone

import pytest

from core.errors import PersistenceError
from core.priorities import COMPLETED
from models.schedule import ActivitySchedule, ClassSchedule, GymSchedule
from services.notification_store import NotificationStore
from services.notifications import NotificationDispatcher
from services.reminder_job import ReminderJob, due_window, within_lead_time

# conftest NOW is Wednesday 2025-03-05 10:00 UTC -> day_of_week 3
WEDNESDAY = 3


@pytest.fixture()
def job(dispatcher, notification_store, schedules, tasks, clock):
    return ReminderJob(dispatcher, notification_store, schedules, tasks, clock=clock)


@pytest.fixture()
def device(notification_store):
    return notification_store.register_token("user-1", "ExponentPushToken[phone]")


def test_within_lead_time_bounds():
    now = datetime(2025, 3, 5, 10, 0)
    assert within_lead_time("10:15", now, 15)
    assert within_lead_time("10:01", now, 15)
    assert not within_lead_time("10:00", now, 15)
    assert not within_lead_time("10:16", now, 15)
    assert not within_lead_time("09:50", now, 15)
    assert not within_lead_time("bogus", now, 15)


def test_due_window_edges():
    assert due_window(1.0) == "1h"
    assert due_window(0.01) == "1h"
    assert due_window(0) is None
    assert due_window(24.0) == "24h"
    assert due_window(23.0) is None
    assert due_window(5) is None


def test_class_reminder_uses_preference_lead(job, schedules, notification_store, gateway, device):
    notification_store.update_preferences("user-1", class_reminder_minutes=30)
    schedules.add(ClassSchedule(user_id="user-1", name="Physics", day_of_week=WEDNESDAY,
                                start_time="10:25", end_time="11:25"))
    schedules.add(ClassSchedule(user_id="user-1", name="Chemistry", day_of_week=WEDNESDAY,
                                start_time="10:45", end_time="11:45"))

    job.run()

    assert [m.body for m in gateway.messages] == ["Physics starts in 30 minutes"]


def test_inactive_or_other_day_entries_ignored(job, schedules, gateway, device):
    schedules.add(ClassSchedule(user_id="user-1", name="Off", day_of_week=WEDNESDAY,
                                start_time="10:10", end_time="11:00", is_active=False))
    schedules.add(ClassSchedule(user_id="user-1", name="Thursday", day_of_week=WEDNESDAY + 1,
                                start_time="10:10", end_time="11:00"))

    job.run()

    assert gateway.messages == []


def test_gym_skipped_date_suppresses_reminder(job, schedules, gateway, device, clock):
    gym = schedules.add(GymSchedule(user_id="user-1", name="Gym", day_of_week=WEDNESDAY,
                                    start_time="10:10", end_time="11:10"))
    schedules.skip_gym_date("user-1", gym.id, clock.now().date().isoformat())

    job.run()
    assert gateway.messages == []

    schedules.unskip_gym_date("user-1", gym.id, clock.now().date().isoformat())
    job.run()
    assert [m.data["type"] for m in gateway.messages] == ["gym_reminder"]


def test_activity_reminder(job, schedules, gateway, device):
    schedules.add(ActivitySchedule(user_id="user-1", name="Prep course", day_of_week=WEDNESDAY,
                                   start_time="10:05", end_time="12:00"))

    report = job.run()

    assert [m.body for m in gateway.messages] == ["Prep course starts soon"]
    assert report.sent == {"activity": 1}


def test_schedule_reminder_repeats_each_tick_inside_window(job, schedules, gateway, device, clock):
    schedules.add(ClassSchedule(user_id="user-1", name="Physics", day_of_week=WEDNESDAY,
                                start_time="10:12", end_time="11:00"))

    job.run()
    clock.advance(minutes=5)
    job.run()
    clock.advance(minutes=5)
    job.run()  # 10:10, still inside

    assert len(gateway.messages) == 3


def test_users_without_active_tokens_are_skipped(job, schedules, notification_store, gateway):
    notification_store.register_token("user-1", "ExponentPushToken[old]")
    notification_store.unregister_token("user-1")
    schedules.add(ClassSchedule(user_id="user-1", name="Physics", day_of_week=WEDNESDAY,
                                start_time="10:10", end_time="11:00"))

    report = job.run()

    assert report.users == 0
    assert gateway.messages == []


def test_due_reminders_fire_exactly_once(job, tasks, gateway, device, clock):
    task = tasks.add("user-1", title="Essay", due_at=clock.now() + timedelta(hours=25))

    # tick every 5 minutes for 26 hours
    for _ in range(26 * 12):
        job.run()
        clock.advance(minutes=5)

    hours = [m.data["hours"] for m in gateway.messages]
    assert hours == [24, 1]
    stored = tasks.get(task.id)
    assert stored.notified_24h and stored.notified_1h


def test_completed_and_undated_tasks_ignored(job, tasks, gateway, device, clock):
    tasks.add("user-1", title="Done", due_at=clock.now() + timedelta(minutes=30), status=COMPLETED)
    tasks.add("user-1", title="Someday")

    job.run()

    assert gateway.messages == []


def test_transport_error_leaves_flag_for_retry(job, tasks, gateway, device, clock):
    task = tasks.add("user-1", title="Essay", due_at=clock.now() + timedelta(minutes=40))
    gateway.fail = True

    job.run()
    assert tasks.get(task.id).notified_1h is False

    gateway.fail = False
    clock.advance(minutes=5)
    job.run()
    assert tasks.get(task.id).notified_1h is True
    assert len(gateway.messages) == 1


def test_disabled_due_toggle_sends_nothing(job, tasks, notification_store, gateway, device, clock):
    notification_store.update_preferences("user-1", task_due_1h_enabled=False)
    task = tasks.add("user-1", title="Essay", due_at=clock.now() + timedelta(minutes=40))

    job.run()

    assert gateway.messages == []
    assert tasks.get(task.id).notified_1h is False


def test_explicit_now_overrides_clock(job, tasks, gateway, device):
    due = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    tasks.add("user-1", title="Future", due_at=due)

    job.run(now=due - timedelta(minutes=30))

    assert [m.data["hours"] for m in gateway.messages] == [1]


def test_quiet_hours_follow_explicit_now(job, schedules, notification_store, gateway, device):
    notification_store.update_preferences(
        "user-1", quiet_hours_enabled=True, quiet_hours_start="22:00", quiet_hours_end="07:00"
    )
    schedules.add(ClassSchedule(user_id="user-1", name="Night", day_of_week=WEDNESDAY,
                                start_time="23:10", end_time="23:50"))

    # the fixture clock still reads 10:00
    job.run(now=datetime(2025, 3, 5, 23, 0, tzinfo=timezone.utc))
    assert gateway.messages == []

    notification_store.update_preferences("user-1", quiet_hours_enabled=False)
    job.run(now=datetime(2025, 3, 5, 23, 0, tzinfo=timezone.utc))
    assert [m.body for m in gateway.messages] == ["Night starts in 15 minutes"]


class BrokenPreferences(NotificationStore):
    def __init__(self, session_factory, broken_user):
        super().__init__(session_factory)
        self.broken_user = broken_user

    def get_preferences(self, user_id):
        if user_id == self.broken_user:
            raise PersistenceError("database is locked")
        return super().get_preferences(user_id)


def test_persistence_failure_skips_only_that_user(session_factory, schedules, tasks, gateway, clock):
    store = BrokenPreferences(session_factory, "user-1")
    store.register_token("user-1", "ExponentPushToken[one]")
    store.register_token("user-2", "ExponentPushToken[two]")
    for user_id in ("user-1", "user-2"):
        schedules.add(ClassSchedule(user_id=user_id, name="Physics", day_of_week=WEDNESDAY,
                                    start_time="10:10", end_time="11:00"))
    dispatcher = NotificationDispatcher(store, gateway, clock=clock)
    job = ReminderJob(dispatcher, store, schedules, tasks, clock=clock)

    report = job.run()

    assert report.users == 2
    assert list(report.failed) == ["user-1"]
    assert [m.to for m in gateway.messages] == ["ExponentPushToken[two]"]
    assert report.sent == {"class": 1}
