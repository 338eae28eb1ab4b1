"""Daily currency rate fetch job."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dailyjobs.config import settings
from dailyjobs.currency.client import CurrencyFetchError
from dailyjobs.scheduler.clock import Clock

if TYPE_CHECKING:
    from datetime import datetime

    from dailyjobs.currency.client import DailyRates, FrankfurterClient
    from dailyjobs.currency.store import RateStore

logger = logging.getLogger(__name__)

JOB_NAME = "currency"


def date_key(now: datetime) -> str:
    """Idempotency key for the currency job: the local date, ``YYYY-MM-DD``."""
    return now.strftime("%Y-%m-%d")


class CurrencyFetchTask:
    """Fetches IDR rates for a date and stores them once.

    Today's key fetches the latest rates; any other key fetches that day's
    historical rates. The API reports the date its rates belong to, which
    lags the calendar on weekends and holidays. Rates are stored under that
    API date, so a key counts as done when either the key itself or the date
    the API answers with is already stored.

    The rates fetched by ``already_done`` are reused by the ``execute`` call
    that follows for the same key.

    Args:
        client: Frankfurter API client.
        store: Rate persistence.
        clock: Clock deciding which key is today (default: scheduler timezone).
    """

    def __init__(
        self, client: FrankfurterClient, store: RateStore, clock: Clock | None = None
    ) -> None:
        self._client = client
        self._store = store
        self._clock = clock or Clock(settings.scheduler_timezone)
        self._fetched: tuple[str, DailyRates] | None = None

    async def already_done(self, key: str) -> bool:
        self._fetched = None
        if await self._store.has_date(key):
            return True

        rates = await self._fetch(key)
        self._fetched = (key, rates)
        if rates.date and await self._store.has_date(rates.date):
            logger.info("Rates for %s are dated %s, already stored", key, rates.date)
            return True
        return False

    async def execute(self, key: str) -> dict[str, Any]:
        fetched, self._fetched = self._fetched, None
        rates = fetched[1] if fetched and fetched[0] == key else await self._fetch(key)
        if not rates.date:
            msg = "No date returned from API"
            raise CurrencyFetchError(msg)

        inserted = await self._store.insert(rates.date, rates.rates)
        if not inserted:
            logger.info("Date %s already exists in database, not overwritten", rates.date)
        return {"date": rates.date, "rates": rates.rates, "inserted": inserted}

    async def _fetch(self, key: str) -> DailyRates:
        if key == date_key(self._clock.now()):
            return await self._client.fetch_all()
        return await self._client.fetch_all(key)
