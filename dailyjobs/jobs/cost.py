"""End-of-day HPP Actual (cost of goods) calculation job."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

JOB_NAME = "hpp-actual"


def period_key(now: datetime) -> str:
    """Idempotency key for the cost job: the local period, ``YYYYMM``."""
    return now.strftime("%Y%m")


class CostCalculator(Protocol):
    """The database-side HPP Actual calculation (a stored procedure call)."""

    async def __call__(
        self, periode: str, recalculate_existing: bool = False
    ) -> dict[str, Any]: ...


class CostCalculationTask:
    """Calculates HPP Actual for a period's uncalculated batches.

    Args:
        calculate: Async callable running the calculation for a period.
    """

    def __init__(self, calculate: CostCalculator) -> None:
        self._calculate = calculate

    async def already_done(self, key: str) -> bool:
        # Only uncalculated batches are processed, so a rerun is harmless.
        return False

    async def execute(self, key: str) -> dict[str, Any]:
        summary = await self._calculate(key, recalculate_existing=False)
        logger.info(
            "HPP Actual for %s: %s products, %s batches, %s granulates, %s errors",
            key,
            summary.get("productsProcessed"),
            summary.get("totalProductBatches"),
            summary.get("granulatesProcessed"),
            summary.get("errors"),
        )
        return {
            "periode": key,
            "productsProcessed": summary.get("productsProcessed", 0),
            "totalProductBatches": summary.get("totalProductBatches", 0),
            "granulatesProcessed": summary.get("granulatesProcessed", 0),
            "errors": summary.get("errors", 0),
            "durationSeconds": summary.get("durationSeconds"),
            "errorBatches": summary.get("errorBatches") or [],
        }
