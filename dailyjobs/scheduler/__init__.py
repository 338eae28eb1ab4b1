"""Scheduled task retry engine — clock, retry, single-flight runs and daily triggers."""

from dailyjobs.scheduler.adapter import TaskAdapter
from dailyjobs.scheduler.clock import Clock
from dailyjobs.scheduler.coordinator import ALREADY_RUNNING, RunCoordinator
from dailyjobs.scheduler.engine import SchedulerEngine
from dailyjobs.scheduler.errors import TaskExecutionError, TaskTimeoutError
from dailyjobs.scheduler.models import EngineStatus, LastRunResult, RunState, ScheduleConfig
from dailyjobs.scheduler.retry import RetryScheduler
from dailyjobs.scheduler.trigger import DailyTrigger

__all__ = [
    "ALREADY_RUNNING",
    "Clock",
    "DailyTrigger",
    "EngineStatus",
    "LastRunResult",
    "RetryScheduler",
    "RunCoordinator",
    "RunState",
    "ScheduleConfig",
    "SchedulerEngine",
    "TaskAdapter",
    "TaskExecutionError",
    "TaskTimeoutError",
]
