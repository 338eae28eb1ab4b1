"""RunCoordinator — single-flight execution of one attempt."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from dailyjobs.scheduler.errors import TaskTimeoutError
from dailyjobs.scheduler.models import LastRunResult

if TYPE_CHECKING:
    from dailyjobs.scheduler.adapter import TaskAdapter
    from dailyjobs.scheduler.clock import Clock
    from dailyjobs.scheduler.models import RunState, ScheduleConfig
    from dailyjobs.scheduler.retry import RetryScheduler

logger = logging.getLogger(__name__)

ALREADY_RUNNING = "already running"


class RunCoordinator:
    """Runs attempts for one job, never more than one at a time.

    Cron fires, retry timers and manual triggers all enter through
    ``attempt()``. The ``task_running`` flag is the single-flight lock; it is
    set and cleared in exactly one place.

    Args:
        config: Schedule of the job.
        state: Shared run state of the owning engine.
        adapter: The job's unit of work.
        retry: Retry scheduler consulted after a failure.
        clock: Clock for timestamps and window checks.
    """

    def __init__(
        self,
        config: ScheduleConfig,
        state: RunState,
        adapter: TaskAdapter,
        retry: RetryScheduler,
        clock: Clock,
    ) -> None:
        self._config = config
        self._state = state
        self._adapter = adapter
        self._retry = retry
        self._clock = clock
        self._last_result: LastRunResult | None = None

    @property
    def last_result(self) -> LastRunResult | None:
        return self._last_result

    async def attempt(self, key: str, *, manual: bool = False) -> LastRunResult:
        """Run the job for *key* unless an attempt is already in flight."""
        name = self._config.name
        if self._state.task_running:
            logger.info("[%s] Already running, skipping attempt for %s", name, key)
            return LastRunResult(
                timestamp=self._clock.now(),
                key=key,
                success=False,
                error_message=ALREADY_RUNNING,
                manual=manual,
            )

        self._state.task_running = True
        logger.info("[%s] Starting attempt for %s%s", name, key, " (manual)" if manual else "")
        started = time.monotonic()
        generation = self._state.stop_generation
        error: Exception | None = None
        skipped = False
        metrics: dict[str, Any] = {}
        try:
            if await self._adapter.already_done(key):
                skipped = True
            else:
                metrics = dict(await self._execute(key) or {})
        except Exception as exc:
            logger.exception("[%s] Attempt for %s failed", name, key)
            error = exc
        finally:
            self._state.task_running = False

        duration = round(time.monotonic() - started, 3)
        if error is not None:
            result = self._on_failure(
                key,
                error,
                manual=manual,
                duration=duration,
                stopped=(
                    generation != self._state.stop_generation
                    and not self._state.scheduler_active
                ),
            )
        else:
            self._retry.disarm()
            result = LastRunResult(
                timestamp=self._clock.now(),
                key=key,
                success=True,
                skipped=skipped,
                manual=manual,
                duration_seconds=duration,
                metrics=metrics,
            )
            if skipped:
                logger.info("[%s] %s already done, skipping", name, key)
            else:
                logger.info("[%s] Completed %s in %.1fs", name, key, duration)

        self._last_result = result
        return result

    async def _execute(self, key: str) -> dict[str, Any]:
        timeout = self._config.execute_timeout
        if timeout is None:
            return await self._adapter.execute(key)
        try:
            return await asyncio.wait_for(
                self._adapter.execute(key), timeout.total_seconds()
            )
        except TimeoutError as exc:
            msg = f"Execution timed out after {timeout.total_seconds():g}s"
            raise TaskTimeoutError(msg) from exc

    def _on_failure(
        self,
        key: str,
        error: Exception,
        *,
        manual: bool,
        duration: float,
        stopped: bool,
    ) -> LastRunResult:
        """Arm a retry while inside the window, otherwise give up for the day.

        An attempt that outlived a ``stop()`` gives up regardless of the window,
        unless the engine was started again before it failed.
        """
        name = self._config.name
        now = self._clock.now()
        message = str(error) or type(error).__name__

        if not stopped and self._retry.is_within_retry_window(now):
            self._retry.arm(key, self)
            retry_in = int(self._config.retry_interval.total_seconds())
            logger.warning("[%s] Will retry %s in %ds", name, key, retry_in)
            return LastRunResult(
                timestamp=now,
                key=key,
                success=False,
                will_retry=True,
                retry_in_seconds=retry_in,
                error_message=message,
                manual=manual,
                duration_seconds=duration,
            )

        self._retry.disarm()
        if stopped:
            reason = "Scheduler stopped during attempt"
        else:
            reason = f"Past retry window (cutoff {self._config.cutoff_hour:02d}:00)"
        logger.warning(
            "[%s] %s; giving up on %s until the next scheduled run", name, reason, key
        )
        return LastRunResult(
            timestamp=now,
            key=key,
            success=False,
            error_message=message,
            reason=reason,
            manual=manual,
            duration_seconds=duration,
        )
