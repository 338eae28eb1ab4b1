"""Scheduler data models — schedule configuration, run state, and run results."""

from __future__ import annotations

import zoneinfo
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dailyjobs.config import Settings


@dataclass(frozen=True)
class ScheduleConfig:
    """When a job runs and how long it may keep retrying.

    The retry window opens at the scheduled hour and closes at the cutoff
    hour. When ``cutoff_hour < scheduled_hour`` the window spans midnight
    (e.g. 23:00 → 00:00 the next day). Otherwise it is a same-day window,
    empty when both hours are equal. The window never spans more than 24h.

    Attributes:
        name: Job name, used in logs, job ids and HTTP routes.
        scheduled_hour: Hour (0-23) of the daily run.
        scheduled_minute: Minute (0-59) of the daily run.
        retry_interval: Delay between a failure and the next attempt.
        cutoff_hour: Hour (0-23) at which retries stop.
        timezone: IANA timezone the hours are read in.
        timezone_label: Short label shown in status output (e.g. ``"WIB"``).
        execute_timeout: Upper bound for one ``execute`` call (None → unbounded).
    """

    name: str
    scheduled_hour: int
    scheduled_minute: int
    retry_interval: timedelta
    cutoff_hour: int
    timezone: str
    timezone_label: str = ""
    execute_timeout: timedelta | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.scheduled_hour <= 23:
            msg = f"scheduled_hour must be 0-23, got {self.scheduled_hour}"
            raise ValueError(msg)
        if not 0 <= self.scheduled_minute <= 59:
            msg = f"scheduled_minute must be 0-59, got {self.scheduled_minute}"
            raise ValueError(msg)
        if not 0 <= self.cutoff_hour <= 23:
            msg = f"cutoff_hour must be 0-23, got {self.cutoff_hour}"
            raise ValueError(msg)
        if self.retry_interval <= timedelta(0):
            msg = f"retry_interval must be positive, got {self.retry_interval}"
            raise ValueError(msg)
        if self.execute_timeout is not None and self.execute_timeout <= timedelta(0):
            msg = f"execute_timeout must be positive, got {self.execute_timeout}"
            raise ValueError(msg)
        try:
            zoneinfo.ZoneInfo(self.timezone)
        except (zoneinfo.ZoneInfoNotFoundError, ValueError) as exc:
            msg = f"Unknown timezone: {self.timezone}"
            raise ValueError(msg) from exc

    @classmethod
    def from_settings(cls, settings: Settings, prefix: str, name: str) -> ScheduleConfig:
        """Build a job config from the ``<prefix>_*`` fields of *settings*."""
        timeout_seconds = getattr(settings, f"{prefix}_execute_timeout_seconds")
        return cls(
            name=name,
            scheduled_hour=getattr(settings, f"{prefix}_scheduled_hour"),
            scheduled_minute=getattr(settings, f"{prefix}_scheduled_minute"),
            retry_interval=timedelta(
                minutes=getattr(settings, f"{prefix}_retry_interval_minutes")
            ),
            cutoff_hour=getattr(settings, f"{prefix}_cutoff_hour"),
            timezone=settings.scheduler_timezone,
            timezone_label=settings.scheduler_timezone_label,
            execute_timeout=(
                timedelta(seconds=timeout_seconds) if timeout_seconds else None
            ),
        )

    @property
    def spans_midnight(self) -> bool:
        return self.cutoff_hour < self.scheduled_hour

    @property
    def scheduled_time(self) -> str:
        """Display form, e.g. ``"23:00 WIB"``."""
        label = self.timezone_label or self.timezone
        return f"{self.scheduled_hour:02d}:{self.scheduled_minute:02d} {label}"


@dataclass
class RunState:
    """Mutable per-engine state.

    ``stop_generation`` is bumped on every stop so an attempt that was in
    flight at the time does not arm a retry while the engine stays stopped.
    The pending retry itself lives in the scheduler as a one-off job.
    """

    scheduler_active: bool = False
    task_running: bool = False
    stop_generation: int = 0


@dataclass(frozen=True)
class LastRunResult:
    """Outcome of one attempt. Replaced wholesale after every attempt."""

    timestamp: datetime
    key: str | None
    success: bool
    skipped: bool = False
    will_retry: bool = False
    retry_in_seconds: int | None = None
    error_message: str | None = None
    reason: str | None = None
    manual: bool = False
    duration_seconds: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        """Human-readable summary used by the HTTP layer."""
        if self.error_message:
            return self.error_message
        if self.skipped:
            return f"Already done for {self.key}, skipped"
        return f"Completed for {self.key}"

    @property
    def retry_in(self) -> str | None:
        """Retry delay as text, e.g. ``"5 minutes"``."""
        if self.retry_in_seconds is None:
            return None
        minutes, seconds = divmod(self.retry_in_seconds, 60)
        if seconds:
            return f"{self.retry_in_seconds} seconds"
        return f"{minutes} minute{'s' if minutes != 1 else ''}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape of the HTTP surface."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "key": self.key,
            "success": self.success,
            "skipped": self.skipped,
            "willRetry": self.will_retry,
            "retryInSeconds": self.retry_in_seconds,
            "retryIn": self.retry_in,
            "message": self.message,
            "reason": self.reason,
            "manual": self.manual,
            "durationSeconds": self.duration_seconds,
            "metrics": self.metrics,
        }


@dataclass(frozen=True)
class EngineStatus:
    """Point-in-time snapshot returned by ``SchedulerEngine.status()``."""

    name: str
    scheduler_active: bool
    task_running: bool
    has_pending_retry: bool
    scheduled_time: str
    retry_interval_seconds: int
    next_run_at: datetime | None = None
    next_retry_at: datetime | None = None
    last_run_result: LastRunResult | None = None

    @property
    def retry_interval_minutes(self) -> int | float:
        """Whole minutes as an int, fractional intervals as a float."""
        minutes, seconds = divmod(self.retry_interval_seconds, 60)
        return minutes if not seconds else self.retry_interval_seconds / 60

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "isSchedulerRunning": self.scheduler_active,
            "isTaskRunning": self.task_running,
            "hasPendingRetry": self.has_pending_retry,
            "scheduledTime": self.scheduled_time,
            "retryIntervalMinutes": self.retry_interval_minutes,
            "nextRunAt": self.next_run_at.isoformat() if self.next_run_at else None,
            "nextRetryAt": self.next_retry_at.isoformat() if self.next_retry_at else None,
            "lastRunResult": (
                self.last_run_result.to_dict() if self.last_run_result else None
            ),
        }
