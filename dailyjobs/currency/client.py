"""Frankfurter exchange-rate API client (rates to IDR) using httpx.

API documentation: https://www.frankfurter.app/docs/
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

import httpx

from dailyjobs.config import settings
from dailyjobs.scheduler.errors import TaskExecutionError

logger = logging.getLogger(__name__)

# API currency code -> daily_currency column name
CURRENCY_MAPPING = {
    "USD": "USD",
    "EUR": "EUR",
    "CHF": "CHF",
    "SGD": "SGD",
    "JPY": "JPY",
    "MYR": "MYR",
    "GBP": "GBP",
    "CNY": "RMB",
    "AUD": "AUD",
}

CURRENCIES = list(CURRENCY_MAPPING)

USER_AGENT = "DailyJobs-CurrencyFetcher/1.0"


class CurrencyFetchError(TaskExecutionError):
    """The exchange-rate API returned no usable data."""


@dataclass
class DailyRates:
    """Rates for all supported currencies, keyed by column name."""

    date: str | None = None
    rates: dict[str, float] = field(default_factory=dict)


def get_supported_currencies() -> list[dict[str, str]]:
    """Return ``[{"apiCode": ..., "dbColumn": ...}]`` for every supported currency."""
    return [{"apiCode": code, "dbColumn": CURRENCY_MAPPING[code]} for code in CURRENCIES]


class FrankfurterClient:
    """Fetches IDR rates for each supported currency, latest or for one date.

    Args:
        base_url: API root (default from settings).
        delay: Pause in seconds between per-currency requests.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str | None = None,
        delay: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.frankfurter_api_url).rstrip("/")
        self._delay = settings.currency_api_delay_seconds if delay is None else delay
        self._timeout = timeout or settings.currency_request_timeout_seconds
        self._transport = transport

    async def fetch_rate(
        self, client: httpx.AsyncClient, currency: str, date: str | None = None
    ) -> tuple[str, float]:
        """Return ``(date, rate)`` for one currency to IDR.

        Without *date* the latest published rate is fetched. For a date with
        no publication (weekend, holiday) the API answers with the closest
        earlier date, which is what the returned date reflects.
        """
        path = f"/{date}" if date else "/latest"
        resp = await client.get(path, params={"from": currency, "to": "IDR"})
        resp.raise_for_status()
        data = resp.json()
        rate = (data.get("rates") or {}).get("IDR")
        if not rate or not data.get("date"):
            msg = f"Invalid response structure for {currency}"
            raise CurrencyFetchError(msg)
        return data["date"], float(rate)

    async def fetch_all(self, date: str | None = None) -> DailyRates:
        """Fetch every supported currency. Individual failures are logged and skipped."""
        result = DailyRates()
        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Accept": "application/json", "User-Agent": USER_AGENT},
            transport=self._transport,
        ) as client:
            for i, currency in enumerate(CURRENCIES):
                try:
                    rate_date, rate = await self.fetch_rate(client, currency, date)
                except (httpx.HTTPError, ValueError, CurrencyFetchError) as exc:
                    logger.error("Failed to fetch %s: %s", currency, exc)
                else:
                    # The first successful response decides the date.
                    if result.date is None:
                        result.date = rate_date
                    result.rates[CURRENCY_MAPPING[currency]] = rate

                if self._delay and i < len(CURRENCIES) - 1:
                    await asyncio.sleep(self._delay)

        logger.info(
            "Fetched %s rates: date=%s, %d/%d currencies",
            date or "latest",
            result.date,
            len(result.rates),
            len(CURRENCIES),
        )
        return result
