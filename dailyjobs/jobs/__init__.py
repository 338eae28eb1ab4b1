"""Concrete scheduled jobs — currency rate fetch and HPP Actual calculation."""

from dailyjobs.jobs.cost import CostCalculationTask, CostCalculator, period_key
from dailyjobs.jobs.currency import CurrencyFetchTask, date_key

__all__ = [
    "CostCalculationTask",
    "CostCalculator",
    "CurrencyFetchTask",
    "date_key",
    "period_key",
]
