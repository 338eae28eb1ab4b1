"""Shared test fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from dailyjobs.scheduler.clock import Clock
from dailyjobs.scheduler.models import ScheduleConfig

TZ = "Asia/Jakarta"


class FakeClock(Clock):
    """Clock with a settable wall time."""

    def __init__(self, now: datetime, timezone: str = TZ) -> None:
        super().__init__(timezone)
        self._now = now if now.tzinfo else now.replace(tzinfo=self.tz)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now if now.tzinfo else now.replace(tzinfo=self.tz)


class FakeAdapter:
    """Task adapter whose behaviour is driven by AsyncMocks."""

    def __init__(self) -> None:
        self.already_done = AsyncMock(return_value=False)
        self.execute = AsyncMock(return_value={"rows": 1})


@pytest.fixture
def clock() -> FakeClock:
    """Wall time pinned to 2025-01-15 23:00 WIB."""
    return FakeClock(datetime(2025, 1, 15, 23, 0))


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def make_config():
    """Factory for a 23:00 WIB job with a 5 minute retry and a 00:00 cutoff."""

    def _make(**overrides: Any) -> ScheduleConfig:
        defaults: dict[str, Any] = {
            "name": "test-job",
            "scheduled_hour": 23,
            "scheduled_minute": 0,
            "retry_interval": timedelta(minutes=5),
            "cutoff_hour": 0,
            "timezone": TZ,
            "timezone_label": "WIB",
        }
        defaults.update(overrides)
        return ScheduleConfig(**defaults)

    return _make


@pytest.fixture
async def scheduler():
    """Scheduler started paused: jobs are registered but never run on their own."""
    s = AsyncIOScheduler(timezone=TZ)
    s.start(paused=True)
    yield s
    if s.running:
        s.shutdown(wait=False)


@pytest.fixture
def fire_retry(scheduler: AsyncIOScheduler):
    """Run the pending retry job of *name* the way APScheduler does.

    A fired one-off job is removed from the scheduler before its callback runs.
    """

    async def _fire(name: str = "test-job") -> None:
        job = scheduler.get_job(f"retry:{name}")
        assert job is not None, f"no retry pending for {name}"
        scheduler.remove_job(job.id)
        await job.func(*job.args, **job.kwargs)

    return _fire
