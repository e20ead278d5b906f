from datetime import datetime, timedelta, timezone

import pytest

from core.priorities import HIGH, MEDIUM
from datetime_utils import ensure_utc
from services.classroom_sync import ClassroomSync


COURSES = [
    {"id": "c1", "name": "Algebra", "section": "A", "description": "Linear", "ownerId": "t1"},
    {"id": "c2", "name": "History", "ownerId": "t2"},
]
TEACHERS = {
    "c1": [{"userId": "t1", "profile": {"name": {"fullName": "Ada Lovelace"}}}],
    "c2": [{"userId": "other", "profile": {"name": {"fullName": "Someone Else"}}}],
}


@pytest.fixture()
def sync(credential_manager, courses, tasks, clock):
    return ClassroomSync(credential_manager, courses, tasks, clock=clock)


def test_sync_courses_upserts_with_teacher(sync, classroom, courses, link):
    link("user-1")
    classroom.courses = list(COURSES)
    classroom.teachers = TEACHERS

    synced = sync.sync_courses("user-1")

    assert [c.google_course_id for c in synced] == ["c1", "c2"]
    algebra = courses.get_by_google_id("user-1", "c1")
    assert algebra.teacher_name == "Ada Lovelace"
    assert algebra.section == "A"
    assert courses.get_by_google_id("user-1", "c2").teacher_name == ""


def test_sync_courses_is_idempotent(sync, classroom, courses, link):
    link("user-1")
    classroom.courses = list(COURSES)
    classroom.teachers = TEACHERS

    sync.sync_courses("user-1")
    first = [(c.id, c.google_course_id, c.name, c.section, c.description, c.teacher_name)
             for c in courses.list_for_user("user-1")]
    sync.sync_courses("user-1")
    second = [(c.id, c.google_course_id, c.name, c.section, c.description, c.teacher_name)
              for c in courses.list_for_user("user-1")]

    assert len(second) == 2
    assert first == second


def test_sync_courses_updates_mutable_fields(sync, classroom, courses, link):
    link("user-1")
    classroom.courses = [{"id": "c1", "name": "Algebra"}]
    sync.sync_courses("user-1")

    classroom.courses = [{"id": "c1", "name": "Algebra II", "section": "B"}]
    sync.sync_courses("user-1")

    rows = courses.list_for_user("user-1")
    assert len(rows) == 1
    assert rows[0].name == "Algebra II"
    assert rows[0].section == "B"


def test_sync_tasks_is_create_only(sync, classroom, tasks, link):
    link("user-1")
    classroom.courses = [{"id": "c1", "name": "Algebra"}]
    classroom.assignments = {"c1": [{"id": "w1", "title": "Homework 1"}, {"id": "w2", "title": "Quiz"}]}
    sync.sync_courses("user-1")

    first = sync.sync_tasks("user-1")
    classroom.assignments["c1"][0]["title"] = "Homework 1 (edited upstream)"
    second = sync.sync_tasks("user-1")

    assert len(first) == 2
    assert second == []
    titles = sorted(t.title for t in tasks.list_for_user("user-1"))
    assert titles == ["Homework 1", "Quiz"]


def test_due_date_and_priority(sync, classroom, tasks, link, clock):
    link("user-1")
    classroom.courses = [{"id": "c1", "name": "Algebra"}]
    classroom.assignments = {
        "c1": [
            # tomorrow 05:30 UTC, less than 24h away
            {"id": "soon", "title": "Soon", "dueDate": {"year": 2025, "month": 3, "day": 6},
             "dueTime": {"hours": 5, "minutes": 30}},
            # no dueTime -> 23:59
            {"id": "later", "title": "Later", "dueDate": {"year": 2025, "month": 3, "day": 20}},
            # no dueDate at all
            {"id": "open", "title": "Open ended"},
        ]
    }
    sync.sync_courses("user-1")
    sync.sync_tasks("user-1")

    soon = tasks.find_by_google_id("user-1", "soon")
    later = tasks.find_by_google_id("user-1", "later")
    open_ended = tasks.find_by_google_id("user-1", "open")

    assert ensure_utc(soon.due_at) == datetime(2025, 3, 6, 5, 30, tzinfo=timezone.utc)
    assert soon.priority == HIGH
    assert ensure_utc(later.due_at) == datetime(2025, 3, 20, 23, 59, tzinfo=timezone.utc)
    assert later.priority == MEDIUM
    assert open_ended.due_at is None
    assert open_ended.priority == MEDIUM
    assert soon.is_from_classroom and soon.google_task_id == "soon"


def test_failing_course_does_not_stop_others(sync, classroom, tasks, link):
    link("user-1")
    classroom.courses = [{"id": "c1"}, {"id": "c2"}, {"id": "c3"}]
    classroom.assignments = {
        "c1": [{"id": "w1", "title": "One"}],
        "c3": [{"id": "w3", "title": "Three"}],
    }
    classroom.failing = {"c2"}
    sync.sync_courses("user-1")

    created = sync.sync_tasks("user-1")

    assert sorted(t.google_task_id for t in created) == ["w1", "w3"]


def test_disabled_course_is_skipped(sync, classroom, courses, link):
    link("user-1")
    classroom.courses = [{"id": "c1"}, {"id": "c2"}]
    synced = sync.sync_courses("user-1")
    courses.set_sync_enabled("user-1", synced[1].id, False)

    sync.sync_tasks("user-1")

    fetched = [course for kind, course in classroom.calls if kind == "assignments"]
    assert fetched == ["c1"]


def test_check_for_new_tasks_counts_created(sync, classroom, link):
    link("user-1")
    classroom.courses = [{"id": "c1"}]
    classroom.assignments = {"c1": [{"id": "w1", "title": "One"}]}
    sync.sync_courses("user-1")

    result = sync.check_for_new_tasks("user-1")
    again = sync.check_for_new_tasks("user-1")

    assert result.has_new and result.count == 1
    assert [t.google_task_id for t in result.tasks] == ["w1"]
    assert not again.has_new and again.tasks == []


def test_tasks_are_scoped_per_user(sync, classroom, tasks, link):
    link("user-1")
    link("user-2")
    classroom.courses = [{"id": "c1"}]
    classroom.assignments = {"c1": [{"id": "w1", "title": "Shared work"}]}
    for user in ("user-1", "user-2"):
        sync.sync_courses(user)
        sync.sync_tasks(user)

    assert len(tasks.list_for_user("user-1")) == 1
    assert len(tasks.list_for_user("user-2")) == 1
