"""Tests for the Frankfurter client, the rate store and the currency job."""

from datetime import datetime
from pathlib import Path

import httpx
import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from dailyjobs.currency.client import (
    CURRENCIES,
    CurrencyFetchError,
    FrankfurterClient,
    get_supported_currencies,
)
from dailyjobs.currency.store import RateStore
from dailyjobs.jobs.currency import CurrencyFetchTask, date_key
from dailyjobs.scheduler.engine import SchedulerEngine

API_DATE = "2025-01-15"


def _rates_handler(
    failing: set[str] | None = None,
    date: str = API_DATE,
    historical: dict[str, str] | None = None,
):
    """MockTransport handler for ``/latest`` and ``/<date>``; records every request.

    ``/latest`` answers with *date*. ``/<date>`` answers with the requested
    date, or with the earlier date *historical* maps it to (weekend, holiday).
    """
    failing = failing or set()
    historical = historical or {}
    seen: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        currency = request.url.params["from"]
        path = request.url.path
        seen.append((path, currency))
        assert request.url.params["to"] == "IDR"
        if currency in failing:
            return httpx.Response(503, text="unavailable")
        requested = path.lstrip("/")
        rate_date = date if path == "/latest" else historical.get(requested, requested)
        return httpx.Response(
            200,
            json={"amount": 1.0, "base": currency, "date": rate_date, "rates": {"IDR": 16250.5}},
        )

    handler.seen = seen
    return handler


def _client(handler) -> FrankfurterClient:
    return FrankfurterClient(
        base_url="https://api.test", delay=0, transport=httpx.MockTransport(handler)
    )


@pytest.fixture
def store(tmp_path: Path) -> RateStore:
    return RateStore(db_path=tmp_path / "test.db")


# -- FrankfurterClient ---------------------------------------------------------


async def test_fetch_all_maps_columns() -> None:
    handler = _rates_handler()
    latest = await _client(handler).fetch_all()

    assert latest.date == API_DATE
    assert set(latest.rates) == {"USD", "EUR", "CHF", "SGD", "JPY", "MYR", "GBP", "RMB", "AUD"}
    assert latest.rates["RMB"] == 16250.5
    assert handler.seen == [("/latest", c) for c in CURRENCIES]


async def test_fetch_all_for_date_uses_historical_endpoint() -> None:
    handler = _rates_handler(historical={"2025-01-01": "2024-12-31"})
    rates = await _client(handler).fetch_all("2025-01-01")

    assert rates.date == "2024-12-31"
    assert {path for path, _ in handler.seen} == {"/2025-01-01"}


async def test_single_currency_failure_is_skipped() -> None:
    latest = await _client(_rates_handler(failing={"JPY"})).fetch_all()

    assert latest.date == API_DATE
    assert "JPY" not in latest.rates
    assert len(latest.rates) == len(CURRENCIES) - 1


async def test_all_failures_leave_date_empty() -> None:
    latest = await _client(_rates_handler(failing=set(CURRENCIES))).fetch_all()
    assert latest.date is None
    assert latest.rates == {}


async def test_invalid_payload_is_skipped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"date": API_DATE, "rates": {}})

    latest = await _client(handler).fetch_all()
    assert latest.date is None


def test_supported_currencies() -> None:
    supported = get_supported_currencies()
    assert {"apiCode": "CNY", "dbColumn": "RMB"} in supported
    assert len(supported) == 9


# -- RateStore -----------------------------------------------------------------


async def test_insert_and_read_back(store: RateStore) -> None:
    assert await store.has_date(API_DATE) is False

    inserted = await store.insert(API_DATE, {"USD": 16250.5, "RMB": 2230.1})

    assert inserted is True
    assert await store.has_date(API_DATE) is True
    row = await store.get_by_date(API_DATE)
    assert row["Tanggal"] == API_DATE
    assert row["USD"] == 16250.5
    assert row["RMB"] == 2230.1
    assert row["EUR"] is None


async def test_duplicate_insert_returns_false(store: RateStore) -> None:
    await store.insert(API_DATE, {"USD": 1.0})
    assert await store.insert(API_DATE, {"USD": 2.0}) is False
    assert (await store.get_by_date(API_DATE))["USD"] == 1.0


async def test_get_missing_date(store: RateStore) -> None:
    assert await store.get_by_date("1999-01-01") is None


async def test_creates_parent_dirs(tmp_path: Path) -> None:
    store = RateStore(db_path=tmp_path / "nested" / "dir" / "test.db")
    await store.has_date(API_DATE)
    assert (tmp_path / "nested" / "dir").exists()


# -- CurrencyFetchTask ---------------------------------------------------------


async def test_already_done_when_key_stored(store: RateStore, clock) -> None:
    handler = _rates_handler()
    task = CurrencyFetchTask(_client(handler), store, clock=clock)
    await store.insert(API_DATE, {"USD": 1.0})

    assert await task.already_done(API_DATE) is True
    assert handler.seen == []


async def test_not_done_when_neither_key_nor_api_date_stored(store: RateStore, clock) -> None:
    task = CurrencyFetchTask(_client(_rates_handler()), store, clock=clock)
    assert await task.already_done(API_DATE) is False


async def test_already_done_when_api_date_stored(store: RateStore, clock) -> None:
    # Saturday run: the latest rates are still Friday's, which are stored.
    clock.set(datetime(2025, 1, 18, 23, 0))
    await store.insert("2025-01-17", {"USD": 1.0})
    task = CurrencyFetchTask(_client(_rates_handler(date="2025-01-17")), store, clock=clock)

    assert await task.already_done("2025-01-18") is True


async def test_execute_reuses_rates_fetched_by_already_done(store: RateStore, clock) -> None:
    handler = _rates_handler()
    task = CurrencyFetchTask(_client(handler), store, clock=clock)

    assert await task.already_done(API_DATE) is False
    metrics = await task.execute(API_DATE)

    assert metrics["inserted"] is True
    assert len(handler.seen) == len(CURRENCIES)


async def test_execute_for_today_stores_under_api_date(store: RateStore, clock) -> None:
    clock.set(datetime(2025, 1, 18, 23, 0))
    handler = _rates_handler(date="2025-01-17")
    task = CurrencyFetchTask(_client(handler), store, clock=clock)

    metrics = await task.execute("2025-01-18")

    assert metrics["date"] == "2025-01-17"
    assert metrics["inserted"] is True
    assert {path for path, _ in handler.seen} == {"/latest"}
    assert await store.has_date("2025-01-17") is True


async def test_execute_for_past_key_fetches_that_date(store: RateStore, clock) -> None:
    handler = _rates_handler(date="2025-01-15")
    task = CurrencyFetchTask(_client(handler), store, clock=clock)

    metrics = await task.execute("2024-12-31")

    assert metrics["date"] == "2024-12-31"
    assert {path for path, _ in handler.seen} == {"/2024-12-31"}
    assert await store.has_date("2024-12-31") is True
    assert await store.has_date("2025-01-15") is False


async def test_execute_does_not_overwrite_existing_api_date(store: RateStore, clock) -> None:
    await store.insert(API_DATE, {"USD": 1.0})
    task = CurrencyFetchTask(_client(_rates_handler()), store, clock=clock)

    metrics = await task.execute("2025-01-15")

    assert metrics["inserted"] is False
    assert (await store.get_by_date(API_DATE))["USD"] == 1.0


async def test_execute_without_date_raises(store: RateStore, clock) -> None:
    handler = _rates_handler(failing=set(CURRENCIES))
    task = CurrencyFetchTask(_client(handler), store, clock=clock)

    with pytest.raises(CurrencyFetchError, match="No date returned from API"):
        await task.execute(API_DATE)


def test_date_key() -> None:
    assert date_key(datetime(2025, 1, 5, 23, 0)) == "2025-01-05"


# -- Currency job through the engine -------------------------------------------


def _engine(make_config, task, clock, scheduler) -> SchedulerEngine:
    return SchedulerEngine(
        make_config(name="currency"), task, date_key, scheduler=scheduler, clock=clock
    )


async def test_manual_override_key_stores_that_date(
    make_config, store: RateStore, clock, scheduler: AsyncIOScheduler
) -> None:
    task = CurrencyFetchTask(_client(_rates_handler(date="2025-01-17")), store, clock=clock)
    engine = _engine(make_config, task, clock, scheduler)

    result = await engine.manual_trigger("2024-12-31")

    assert result.success is True
    assert result.key == "2024-12-31"
    assert result.metrics["date"] == "2024-12-31"
    assert await store.has_date("2024-12-31") is True
    assert await task.already_done("2024-12-31") is True


async def test_rerun_with_stored_api_date_is_skipped(
    make_config, store: RateStore, clock, scheduler: AsyncIOScheduler
) -> None:
    clock.set(datetime(2025, 1, 18, 23, 0))
    await store.insert("2025-01-17", {"USD": 1.0})
    task = CurrencyFetchTask(_client(_rates_handler(date="2025-01-17")), store, clock=clock)
    engine = _engine(make_config, task, clock, scheduler)

    result = await engine.manual_trigger()

    assert result.success is True
    assert result.skipped is True
    assert result.message == "Already done for 2025-01-18, skipped"
    assert (await store.get_by_date("2025-01-17"))["USD"] == 1.0
