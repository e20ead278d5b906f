import os
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("REMINDERS_DATA_DIR", tempfile.mkdtemp(prefix="reminders-tests-"))

import pytest
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401
from core.clock import FixedClock
from core.errors import TransportError, UpstreamFetchError
from services.connection_store import ConnectionStore
from services.course_store import CourseStore
from services.google_auth import CredentialManager, IssuedCredential
from services.notification_store import NotificationStore
from services.notifications import NotificationDispatcher
from services.push_gateway import DEVICE_NOT_REGISTERED, PushTicket
from services.schedule_store import ScheduleStore
from services.task_store import TaskStore


# Wednesday
NOW = datetime(2025, 3, 5, 10, 0)


class FakeClassroom:
    """In-memory stand-in for :class:`ClassroomClient`."""

    def __init__(self, courses=None, assignments=None, teachers=None, failing=()):
        self.courses = courses or []
        self.assignments = assignments or {}
        self.teachers = teachers or {}
        self.failing = set(failing)
        self.calls = []

    def list_active_courses(self):
        self.calls.append(("courses", None))
        return [dict(c) for c in self.courses]

    def list_teachers(self, course_id):
        self.calls.append(("teachers", course_id))
        return list(self.teachers.get(course_id, []))

    def list_assignments(self, course_id):
        self.calls.append(("assignments", course_id))
        if course_id in self.failing:
            raise UpstreamFetchError("backend error", course_id=course_id, status=500)
        return [dict(w) for w in self.assignments.get(course_id, [])]


class FakeGateway:
    def __init__(self, dead=(), fail=False):
        self.dead = set(dead)
        self.fail = fail
        self.batches = []

    def send(self, messages):
        if self.fail:
            raise TransportError("gateway unreachable")
        self.batches.append(list(messages))
        tickets = []
        for message in messages:
            if message.to in self.dead:
                tickets.append(
                    PushTicket(
                        token=message.to,
                        status="error",
                        message="not a registered push token",
                        error=DEVICE_NOT_REGISTERED,
                    )
                )
            else:
                tickets.append(PushTicket(token=message.to, status="ok", id=f"ticket-{message.to}"))
        return tickets

    @property
    def messages(self):
        return [m for batch in self.batches for m in batch]


class FakeRefresher:
    def __init__(self, issued=None, error=None):
        self.issued = issued
        self.error = error
        self.calls = 0

    def __call__(self, connection):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.issued


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite:///:memory:")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return factory


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def connections(session_factory):
    return ConnectionStore(session_factory)


@pytest.fixture()
def courses(session_factory):
    return CourseStore(session_factory)


@pytest.fixture()
def tasks(session_factory):
    return TaskStore(session_factory)


@pytest.fixture()
def schedules(session_factory):
    return ScheduleStore(session_factory)


@pytest.fixture()
def notification_store(session_factory):
    return NotificationStore(session_factory)


@pytest.fixture()
def classroom():
    return FakeClassroom()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def refresher(clock):
    return FakeRefresher(
        IssuedCredential(
            access_token="fresh-access",
            refresh_token=None,
            expiry=clock.now() + timedelta(hours=1),
        )
    )


@pytest.fixture()
def credential_manager(connections, clock, classroom, refresher):
    return CredentialManager(
        connections,
        clock=clock,
        refresher=refresher,
        client_factory=lambda creds: classroom,
    )


@pytest.fixture()
def dispatcher(notification_store, gateway, clock):
    return NotificationDispatcher(notification_store, gateway, clock=clock)


@pytest.fixture()
def link(connections, clock):
    """Create an OAuth connection whose token is still valid."""

    def _link(user_id="user-1", **overrides):
        fields = dict(
            access_token="access-" + user_id,
            refresh_token="refresh-" + user_id,
            token_expiry=clock.now() + timedelta(minutes=30),
        )
        fields.update(overrides)
        return connections.create(user_id, **fields)

    return _link
