"""Interval scheduling for the sync and reminder jobs."""

from __future__ import annotations

import threading
from typing import Callable, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from core.log import get_logger
from core.settings import REMINDERS, SYNC


logger = get_logger("scheduler")


class RunIfIdle:
    """Wraps a job so that a firing which finds the previous one still running is skipped."""

    def __init__(self, name: str, fn: Callable[[], object]) -> None:
        self.name = name
        self.fn = fn
        self._lock = threading.Lock()
        self.skipped = 0

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def __call__(self) -> bool:
        if not self._lock.acquire(blocking=False):
            self.skipped += 1
            logger.warning("Job %s is still running; skipping this firing", self.name)
            return False
        try:
            logger.info("Running %s job...", self.name)
            self.fn()
        except Exception:
            # a failed firing must not take the scheduler down
            logger.exception("Job %s failed", self.name)
        finally:
            self._lock.release()
        return True


class JobScheduler:
    SYNC_JOB_ID = "classroom_sync"
    REMINDER_JOB_ID = "reminders"

    def __init__(
        self,
        sync_fn: Callable[[], object],
        reminder_fn: Callable[[], object],
        *,
        scheduler: Optional[BaseScheduler] = None,
        sync_interval_minutes: int = SYNC.interval_minutes,
        reminder_interval_minutes: int = REMINDERS.interval_minutes,
    ) -> None:
        self.scheduler = scheduler or BackgroundScheduler()
        self.jobs: Dict[str, RunIfIdle] = {
            self.SYNC_JOB_ID: RunIfIdle(self.SYNC_JOB_ID, sync_fn),
            self.REMINDER_JOB_ID: RunIfIdle(self.REMINDER_JOB_ID, reminder_fn),
        }
        self.intervals = {
            self.SYNC_JOB_ID: sync_interval_minutes,
            self.REMINDER_JOB_ID: reminder_interval_minutes,
        }
        self._configured = False

    def configure(self) -> None:
        if self._configured:
            return
        for job_id, guarded in self.jobs.items():
            self.scheduler.add_job(
                guarded,
                trigger="interval",
                minutes=self.intervals[job_id],
                id=job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        self._configured = True

    def start(self) -> None:
        self.configure()
        logger.info(
            "Jobs scheduled: classroom sync every %d minutes, reminders every %d minutes",
            self.intervals[self.SYNC_JOB_ID],
            self.intervals[self.REMINDER_JOB_ID],
        )
        self.scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

    def run_now(self, job_id: str) -> bool:
        """Fire one job immediately, honouring the same run-if-idle guard."""
        return self.jobs[job_id]()


__all__ = ["JobScheduler", "RunIfIdle"]
