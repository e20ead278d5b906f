# reminders/main.py
from __future__ import annotations

import argparse
import logging
import signal
import threading

from apscheduler.schedulers.blocking import BlockingScheduler

from core.clock import SystemClock
from core.log import enable_console, get_logger
from core.settings import REMINDERS
from services.classroom_sync import ClassroomSync
from services.google_auth import CredentialManager
from services.notifications import NotificationDispatcher
from services.reminder_job import ReminderJob
from services.scheduler import JobScheduler
from services.sync_job import SyncJob
from storage.db import init_db


def build_jobs(clock=None):
    clock = clock or SystemClock(REMINDERS.timezone)
    credentials = CredentialManager(clock=clock)
    sync = ClassroomSync(credentials, clock=clock)
    dispatcher = NotificationDispatcher(clock=clock)
    return SyncJob(sync, dispatcher, clock=clock), ReminderJob(dispatcher, clock=clock)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Classroom sync and reminder scheduler")
    parser.add_argument(
        "--once",
        choices=("sync", "reminders"),
        help="run a single pass of one job and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    enable_console(logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger("main")

    init_db()
    sync_job, reminder_job = build_jobs()

    if args.once == "sync":
        report = sync_job.run()
        logger.info(
            "Sync pass done: %d ok, %d failed, %d new tasks",
            len(report.processed), len(report.failed), report.total_new,
        )
        return 1 if report.failed else 0
    if args.once == "reminders":
        report = reminder_job.run()
        logger.info("Reminder pass done: %d users, sent %s", report.users, report.sent)
        return 1 if report.failed else 0

    scheduler = JobScheduler(sync_job.run, reminder_job.run, scheduler=BlockingScheduler())
    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, lambda *_: scheduler.shutdown(wait=False))
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
