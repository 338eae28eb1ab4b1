"""DailyTrigger — fires a job once per day via an APScheduler cron job."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.cron import CronTrigger

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    from dailyjobs.scheduler.clock import Clock
    from dailyjobs.scheduler.coordinator import RunCoordinator
    from dailyjobs.scheduler.models import RunState, ScheduleConfig
    from dailyjobs.scheduler.retry import RetryScheduler

logger = logging.getLogger(__name__)


class DailyTrigger:
    """Registers and removes the daily cron job for one engine.

    Several triggers may share one ``AsyncIOScheduler``; each owns the job id
    ``daily:<name>``. The scheduler is started on first use and left running
    when a trigger stops.

    Args:
        config: Schedule of the job.
        state: Shared run state of the owning engine.
        scheduler: APScheduler instance hosting the cron job.
        coordinator: Entry point for attempts.
        retry: Retry scheduler disarmed on stop.
        key_fn: Derives the idempotency key from the fire time.
        clock: Clock providing the fire time.
    """

    def __init__(
        self,
        config: ScheduleConfig,
        state: RunState,
        scheduler: AsyncIOScheduler,
        coordinator: RunCoordinator,
        retry: RetryScheduler,
        key_fn: Callable[[datetime], str],
        clock: Clock,
    ) -> None:
        self._config = config
        self._state = state
        self._scheduler = scheduler
        self._coordinator = coordinator
        self._retry = retry
        self._key_fn = key_fn
        self._clock = clock

    @property
    def job_id(self) -> str:
        return f"daily:{self._config.name}"

    @property
    def active(self) -> bool:
        return self._state.scheduler_active

    @property
    def next_fire_time(self) -> datetime | None:
        job = self._scheduler.get_job(self.job_id)
        return getattr(job, "next_run_time", None) if job else None

    def start(self) -> bool:
        """Register the daily job. Returns False if it was already active."""
        if self._state.scheduler_active:
            logger.info("[%s] Scheduler already running", self._config.name)
            return False

        if not self._scheduler.running:
            self._scheduler.start()
        self._scheduler.add_job(
            self._fire,
            trigger=CronTrigger(
                hour=self._config.scheduled_hour,
                minute=self._config.scheduled_minute,
                timezone=self._config.timezone,
            ),
            id=self.job_id,
            name=self._config.name,
            misfire_grace_time=None,
            coalesce=True,
            replace_existing=True,
        )
        self._state.scheduler_active = True
        logger.info(
            "[%s] Started! Will run daily at %s", self._config.name, self._config.scheduled_time
        )
        return True

    def stop(self) -> bool:
        """Remove the daily job and any pending retry. Returns False if inactive."""
        self._state.stop_generation += 1
        self._retry.disarm()
        if not self._state.scheduler_active:
            logger.info("[%s] Scheduler already stopped", self._config.name)
            return False

        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug("Job %s not found in scheduler (may already be removed)", self.job_id)
        self._state.scheduler_active = False
        logger.info("[%s] Stopped", self._config.name)
        return True

    async def _fire(self) -> None:
        """Callback invoked by APScheduler at the scheduled time."""
        key = self._key_fn(self._clock.now())
        logger.info("[%s] Cron trigger: starting scheduled attempt for %s", self._config.name, key)
        await self._coordinator.attempt(key)
