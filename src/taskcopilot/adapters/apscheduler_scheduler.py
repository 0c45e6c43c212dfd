"""APScheduler-backed implementation of the Scheduler port."""

import logging
from datetime import datetime
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

logger = logging.getLogger(__name__)


class APSchedulerScheduler:
    """
    One-shot timers on an APScheduler BackgroundScheduler.

    Implements Scheduler protocol. The host calls start() and shutdown();
    jobs added before start() are held until the scheduler runs. Late jobs
    still run however late they are.
    """

    def __init__(self, timezone: str = "UTC", scheduler: BackgroundScheduler | None = None):
        self.scheduler = scheduler or BackgroundScheduler(timezone=timezone)

    def start(self) -> None:
        self.scheduler.start()
        logger.info("Scheduler started")

    def shutdown(self, wait: bool = False) -> None:
        self.scheduler.shutdown(wait=wait)
        logger.info("Scheduler stopped")

    def schedule(self, key: str, when: datetime, callback: Callable[[], None]) -> None:
        # Jobs added before start() are not replaced by id
        if not self.scheduler.running:
            self.cancel(key)
        self.scheduler.add_job(
            callback,
            DateTrigger(run_date=when),
            id=key,
            replace_existing=True,
            misfire_grace_time=None,
            coalesce=True,
        )
        logger.debug(f"Scheduled {key} at {when.isoformat()}")

    def cancel(self, key: str) -> None:
        try:
            self.scheduler.remove_job(key)
            logger.debug(f"Cancelled {key}")
        except JobLookupError:
            pass

    def keys(self) -> set[str]:
        return {job.id for job in self.scheduler.get_jobs()}
