"""SchedulerEngine — status/control facade over one daily job with bounded retry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from dailyjobs.scheduler.clock import Clock
from dailyjobs.scheduler.coordinator import RunCoordinator
from dailyjobs.scheduler.models import EngineStatus, RunState
from dailyjobs.scheduler.retry import RetryScheduler
from dailyjobs.scheduler.trigger import DailyTrigger

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from dailyjobs.scheduler.adapter import TaskAdapter
    from dailyjobs.scheduler.models import LastRunResult, ScheduleConfig

logger = logging.getLogger(__name__)


class SchedulerEngine:
    """Runs one task adapter daily, retrying failures until the cutoff hour.

    Each job (currency fetch, HPP calculation) is one engine instance with its
    own config, adapter and state. Scheduler state is in memory only; after a
    restart the adapter's ``already_done`` is what prevents duplicate work.

    Args:
        config: When the job runs and how long it may retry.
        adapter: The job's unit of work.
        key_fn: Derives the idempotency key (date, period) from wall-clock time.
        scheduler: Shared APScheduler instance (a private one if omitted).
        clock: Clock for wall-clock reads.
    """

    def __init__(
        self,
        config: ScheduleConfig,
        adapter: TaskAdapter,
        key_fn: Callable[[datetime], str],
        scheduler: AsyncIOScheduler | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config
        self._key_fn = key_fn
        self._clock = clock or Clock(config.timezone)
        self._scheduler = scheduler or AsyncIOScheduler(timezone=config.timezone)
        self._state = RunState()
        self._retry = RetryScheduler(config, self._scheduler, self._clock)
        self._coordinator = RunCoordinator(
            config, self._state, adapter, self._retry, self._clock
        )
        self._trigger = DailyTrigger(
            config,
            self._state,
            self._scheduler,
            self._coordinator,
            self._retry,
            key_fn,
            self._clock,
        )

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> ScheduleConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._state.scheduler_active

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> bool:
        """Activate the daily trigger. A no-op if already active."""
        return self._trigger.start()

    def stop(self) -> bool:
        """Deactivate the daily trigger and cancel any pending retry.

        An attempt already in flight runs to completion.
        """
        return self._trigger.stop()

    # -- Status & control ------------------------------------------------------

    def status(self) -> EngineStatus:
        return EngineStatus(
            name=self._config.name,
            scheduler_active=self._state.scheduler_active,
            task_running=self._state.task_running,
            has_pending_retry=self._retry.has_pending,
            scheduled_time=self._config.scheduled_time,
            retry_interval_seconds=int(self._config.retry_interval.total_seconds()),
            next_run_at=self._trigger.next_fire_time,
            next_retry_at=self._retry.next_retry_at,
            last_run_result=self._coordinator.last_result,
        )

    def default_key(self) -> str:
        """The key a cron fire would use right now."""
        return self._key_fn(self._clock.now())

    async def manual_trigger(self, key: str | None = None) -> LastRunResult:
        """Run an attempt now, for *key* or the default key. Never raises on task failure."""
        key = key or self.default_key()
        logger.info("[%s] Manual trigger initiated for %s", self._config.name, key)
        return await self._coordinator.attempt(key, manual=True)
