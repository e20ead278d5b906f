"""Read access to weekly schedules plus gym skip-date bookkeeping."""

from __future__ import annotations

from typing import List, Optional, Type, TypeVar

from sqlmodel import select

from models.schedule import ActivitySchedule, ClassSchedule, GymSchedule, ScheduleSlot
from storage.db import SessionFactory, get_session, session_scope


SlotT = TypeVar("SlotT", bound=ScheduleSlot)


class ScheduleStore:
    def __init__(self, session_factory: SessionFactory = get_session):
        self._session_factory = session_factory

    def add(self, entry: SlotT) -> SlotT:
        with session_scope(self._session_factory) as session:
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry

    def active_for_day(self, model: Type[SlotT], user_id: str, day_of_week: int) -> List[SlotT]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(model)
                .where(model.user_id == user_id)
                .where(model.day_of_week == day_of_week)
                .where(model.is_active == True)  # noqa: E712
                .order_by(model.start_time)
            )
            return list(session.exec(stmt))

    def classes_for_day(self, user_id: str, day_of_week: int) -> List[ClassSchedule]:
        return self.active_for_day(ClassSchedule, user_id, day_of_week)

    def gym_for_day(self, user_id: str, day_of_week: int) -> List[GymSchedule]:
        return self.active_for_day(GymSchedule, user_id, day_of_week)

    def activities_for_day(self, user_id: str, day_of_week: int) -> List[ActivitySchedule]:
        return self.active_for_day(ActivitySchedule, user_id, day_of_week)

    # ----- gym skip dates -----
    def skip_gym_date(self, user_id: str, schedule_id: int, iso_date: str) -> Optional[GymSchedule]:
        return self._update_skipped(user_id, schedule_id, iso_date, skip=True)

    def unskip_gym_date(self, user_id: str, schedule_id: int, iso_date: str) -> Optional[GymSchedule]:
        return self._update_skipped(user_id, schedule_id, iso_date, skip=False)

    def _update_skipped(
        self, user_id: str, schedule_id: int, iso_date: str, *, skip: bool
    ) -> Optional[GymSchedule]:
        with session_scope(self._session_factory) as session:
            entry = session.get(GymSchedule, schedule_id)
            if entry is None or entry.user_id != user_id:
                return None
            dates = list(entry.skipped_dates or [])
            if skip and iso_date not in dates:
                dates.append(iso_date)
            elif not skip:
                dates = [d for d in dates if d != iso_date]
            # reassign so the JSON column is flagged dirty
            entry.skipped_dates = dates
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry


__all__ = ["ScheduleStore"]
