"""Job registry — central catalog of the scheduler engines exposed over HTTP."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dailyjobs.scheduler.engine import SchedulerEngine

logger = logging.getLogger(__name__)


class JobRegistry:
    """Registry of named scheduler engines.

    Usage::

        registry = JobRegistry()
        registry.register(currency_engine)
        registry.get("currency").status()
    """

    def __init__(self) -> None:
        self._engines: dict[str, SchedulerEngine] = {}

    def register(self, engine: SchedulerEngine) -> None:
        """Add an engine under its job name. Raises ValueError on duplicate name."""
        if engine.name in self._engines:
            msg = f"Job '{engine.name}' is already registered"
            raise ValueError(msg)
        self._engines[engine.name] = engine
        logger.info("Registered job: %s (%s)", engine.name, engine.config.scheduled_time)

    def get(self, name: str) -> SchedulerEngine | None:
        """Look up an engine by job name."""
        return self._engines.get(name)

    @property
    def names(self) -> list[str]:
        """All registered job names."""
        return list(self._engines)

    def start_all(self) -> None:
        for engine in self._engines.values():
            engine.start()

    def stop_all(self) -> None:
        for engine in self._engines.values():
            engine.stop()
