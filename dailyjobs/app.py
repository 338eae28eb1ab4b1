"""Wiring — build one scheduler engine per job and run them with the control server."""

from __future__ import annotations

import asyncio
import importlib
import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from dailyjobs.config import Settings, settings
from dailyjobs.currency.client import FrankfurterClient
from dailyjobs.currency.store import RateStore
from dailyjobs.jobs import cost, currency
from dailyjobs.scheduler.engine import SchedulerEngine
from dailyjobs.scheduler.models import ScheduleConfig
from dailyjobs.web.registry import JobRegistry
from dailyjobs.web.server import ControlServer

if TYPE_CHECKING:
    from dailyjobs.jobs.cost import CostCalculator
    from dailyjobs.scheduler.clock import Clock

logger = logging.getLogger(__name__)


def load_cost_calculator(path: str) -> CostCalculator:
    """Resolve a ``"package.module:function"`` path to the HPP cost calculator."""
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        msg = f"Invalid calculator path {path!r}, expected 'package.module:function'"
        raise ValueError(msg)
    calculator = getattr(importlib.import_module(module_name), attr, None)
    if not callable(calculator):
        msg = f"{path} is not a callable"
        raise ValueError(msg)
    return calculator


def build_registry(
    scheduler: AsyncIOScheduler,
    *,
    config: Settings | None = None,
    store: RateStore | None = None,
    client: FrankfurterClient | None = None,
    cost_calculator: CostCalculator | None = None,
    clock: Clock | None = None,
) -> JobRegistry:
    """Create and register the engines for every enabled job.

    The HPP Actual job needs a *cost_calculator* (the database-side
    calculation); without one it is not registered.
    """
    config = config or settings
    registry = JobRegistry()

    if config.currency_enabled:
        task = currency.CurrencyFetchTask(
            client=client or FrankfurterClient(),
            store=store or RateStore(db_path=config.database_path),
            clock=clock,
        )
        registry.register(
            SchedulerEngine(
                ScheduleConfig.from_settings(config, "currency", currency.JOB_NAME),
                task,
                currency.date_key,
                scheduler=scheduler,
                clock=clock,
            )
        )

    if config.hpp_enabled and cost_calculator is not None:
        registry.register(
            SchedulerEngine(
                ScheduleConfig.from_settings(config, "hpp", cost.JOB_NAME),
                cost.CostCalculationTask(cost_calculator),
                cost.period_key,
                scheduler=scheduler,
                clock=clock,
            )
        )
    elif config.hpp_enabled:
        logger.warning("HPP Actual job disabled: no cost calculator (set HPP_CALCULATOR)")

    return registry


async def run(
    stop_event: asyncio.Event | None = None,
    cost_calculator: CostCalculator | None = None,
) -> None:
    """Start the schedulers and control server; run until *stop_event* is set.

    Without an explicit *cost_calculator*, the one named by
    ``settings.hpp_calculator`` is loaded, if any.
    """
    stop_event = stop_event or asyncio.Event()
    if cost_calculator is None and settings.hpp_calculator:
        cost_calculator = load_cost_calculator(settings.hpp_calculator)
    scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
    registry = build_registry(scheduler, cost_calculator=cost_calculator)
    server = ControlServer(registry)

    if settings.autostart_schedulers:
        registry.start_all()
    else:
        logger.info("Autostart disabled; start jobs via POST /jobs/{job}/scheduler/start")
    await server.start()
    try:
        await stop_event.wait()
    finally:
        await server.stop()
        registry.stop_all()
        if scheduler.running:
            scheduler.shutdown(wait=False)
        logger.info("Shutdown complete")
