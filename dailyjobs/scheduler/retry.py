"""RetryScheduler — owns the single pending retry job of one engine."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.jobstores.base import JobLookupError
from apscheduler.triggers.date import DateTrigger

if TYPE_CHECKING:
    from datetime import datetime

    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    from dailyjobs.scheduler.clock import Clock
    from dailyjobs.scheduler.coordinator import RunCoordinator
    from dailyjobs.scheduler.models import ScheduleConfig

logger = logging.getLogger(__name__)


class RetryScheduler:
    """Arms, disarms and gates delayed re-attempts.

    A pending retry is a one-off ``DateTrigger`` job with id ``retry:<name>``
    on the shared scheduler. APScheduler drops the job once it fires, so a
    job that exists is a retry that has not run yet.

    Args:
        config: Schedule of the owning job.
        scheduler: APScheduler instance hosting the retry job.
        clock: Clock used to compute the retry time.
    """

    def __init__(
        self, config: ScheduleConfig, scheduler: AsyncIOScheduler, clock: Clock
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._clock = clock

    @property
    def job_id(self) -> str:
        return f"retry:{self._config.name}"

    @property
    def has_pending(self) -> bool:
        return self._scheduler.get_job(self.job_id) is not None

    @property
    def next_retry_at(self) -> datetime | None:
        job = self._scheduler.get_job(self.job_id)
        return getattr(job, "next_run_time", None) if job else None

    def is_within_retry_window(self, now: datetime) -> bool:
        """Whether a failure at *now* may still be retried today."""
        hour = now.hour
        scheduled = self._config.scheduled_hour
        cutoff = self._config.cutoff_hour
        if self._config.spans_midnight:
            return hour >= scheduled or hour < cutoff
        return scheduled <= hour < cutoff

    def arm(self, key: str, coordinator: RunCoordinator) -> None:
        """Schedule ``coordinator.attempt(key)`` after the retry interval."""
        self.disarm()
        if not self._scheduler.running:
            self._scheduler.start()

        run_at = self._clock.now() + self._config.retry_interval
        self._scheduler.add_job(
            self._fire,
            trigger=DateTrigger(run_date=run_at, timezone=self._config.timezone),
            args=[key, coordinator],
            id=self.job_id,
            name=f"{self._config.name} retry",
            misfire_grace_time=None,
            replace_existing=True,
        )
        logger.info(
            "[%s] Retry for %s armed in %ds",
            self._config.name,
            key,
            int(self._config.retry_interval.total_seconds()),
        )

    def disarm(self) -> None:
        """Cancel the pending retry, if any."""
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            return
        logger.debug("[%s] Pending retry cancelled", self._config.name)

    async def _fire(self, key: str, coordinator: RunCoordinator) -> None:
        """Callback invoked by APScheduler when the retry comes due."""
        logger.info("[%s] Executing scheduled retry for %s", self._config.name, key)
        await coordinator.attempt(key)
