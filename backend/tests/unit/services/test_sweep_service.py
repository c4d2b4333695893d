"""Tests for SweepRunner ordering, rate limiting and failure isolation."""

import asyncio
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pandas as pd

from stockdb.core.exceptions import InstrumentNotFound
from stockdb.core.rate_limit import RateLimiter
from stockdb.services.ingestion_service import IngestionService
from stockdb.services.sweep_service import SweepResult, SweepRunner


def _limiter():
    return SimpleNamespace(wait=AsyncMock())


def _ingestion(daily=None, intraday=None):
    return SimpleNamespace(
        fetch_and_store_daily_bars=AsyncMock(side_effect=daily),
        fetch_and_store_intraday_bars=AsyncMock(side_effect=intraday),
    )


async def test_daily_sweep_visits_tickers_in_order():
    ingestion = _ingestion(daily=[3, 4, 5])
    limiter = _limiter()

    result = await SweepRunner(ingestion, limiter).run_daily_sweep(["A", "B", "C"])

    called = [c.args[0] for c in ingestion.fetch_and_store_daily_bars.await_args_list]
    assert called == ["A", "B", "C"]
    assert result.processed == {"A": 3, "B": 4, "C": 5}
    assert result.total_bars == 12
    assert limiter.wait.await_count == 3


async def test_failure_for_one_ticker_does_not_stop_the_sweep():
    ingestion = _ingestion(daily=[2, RuntimeError("provider exploded"), 7])

    result = await SweepRunner(ingestion, _limiter()).run_daily_sweep(["A", "B", "C"])

    assert result.processed == {"A": 2, "C": 7}
    assert result.failed == {"B": "provider exploded"}
    assert result.skipped == []


async def test_unknown_ticker_is_recorded_as_failure():
    ingestion = _ingestion(daily=[InstrumentNotFound("B"), 1])

    result = await SweepRunner(ingestion, _limiter()).run_daily_sweep(["B", "C"])

    assert "B" in result.failed
    assert result.processed == {"C": 1}


async def test_zero_bars_counts_as_processed():
    result = await SweepRunner(_ingestion(daily=[0]), _limiter()).run_daily_sweep(["A"])
    assert result.processed == {"A": 0}
    assert result.failed == {}


async def test_exception_without_message_records_type_name():
    ingestion = _ingestion(daily=[ValueError()])
    result = await SweepRunner(ingestion, _limiter()).run_daily_sweep(["A"])
    assert result.failed == {"A": "ValueError"}


async def test_intraday_sweep_passes_interval():
    ingestion = _ingestion(intraday=[1, 1])

    result = await SweepRunner(ingestion, _limiter()).run_intraday_sweep(["A", "B"], "5min")

    calls = [c.args for c in ingestion.fetch_and_store_intraday_bars.await_args_list]
    assert calls == [("A", "5min"), ("B", "5min")]
    assert result.job == "intraday (5min)"
    assert result.total_bars == 2


async def test_limiter_waits_before_each_fetch():
    events = []
    limiter = SimpleNamespace(wait=AsyncMock(side_effect=lambda: events.append("wait")))

    async def ingest(ticker):
        events.append(ticker)
        return 1

    ingestion = SimpleNamespace(fetch_and_store_daily_bars=ingest)
    await SweepRunner(ingestion, limiter).run_daily_sweep(["A", "B"])

    assert events == ["wait", "A", "wait", "B"]


async def test_stop_event_skips_remaining_tickers():
    stop = asyncio.Event()

    async def ingest(ticker):
        if ticker == "B":
            stop.set()
        return 1

    ingestion = SimpleNamespace(fetch_and_store_daily_bars=ingest)
    result = await SweepRunner(ingestion, _limiter(), stop_event=stop).run_daily_sweep(
        ["A", "B", "C", "D"]
    )

    # the ticker in flight when the stop was requested still completes
    assert result.processed == {"A": 1, "B": 1}
    assert result.skipped == ["C", "D"]


async def test_empty_ticker_list():
    limiter = _limiter()
    result = await SweepRunner(_ingestion(), limiter).run_daily_sweep([])
    assert result.total_bars == 0
    limiter.wait.assert_not_awaited()


def test_sweep_result_to_dict():
    result = SweepResult(job="daily", processed={"A": 2}, failed={"B": "boom"}, duration_ms=12.3456)
    assert result.to_dict() == {
        "job": "daily",
        "processed": {"A": 2},
        "failed": {"B": "boom"},
        "skipped": [],
        "total_bars": 2,
        "duration_ms": 12.35,
    }


async def test_failed_ticker_does_not_block_persisting_the_others(catalog, store, exchange):
    instruments = {
        ticker: await catalog.create_instrument(exchange.id, ticker, f"{ticker} Corp", "Common Stock")
        for ticker in ("A", "B", "C")
    }

    async def fetch_daily_bars(symbol):
        if symbol == "B":
            raise RuntimeError("boom")
        return pd.DataFrame(
            [
                {
                    "symbol": symbol,
                    "date": date(2024, 1, 2),
                    "open": 10.0,
                    "high": 11.0,
                    "low": 9.0,
                    "close": 10.5,
                    "adj_close": 10.5,
                    "volume": 1_000,
                }
            ]
        )

    provider = SimpleNamespace(fetch_daily_bars=fetch_daily_bars)
    ingestion = IngestionService(provider=provider, catalog=catalog, store=store)

    result = await SweepRunner(ingestion, RateLimiter(0)).run_daily_sweep(["A", "B", "C"])

    assert result.processed == {"A": 1, "C": 1}
    assert result.failed == {"B": "boom"}
    for ticker, expected in (("A", 1), ("B", 0), ("C", 1)):
        bars = await store.list_daily(instruments[ticker].id)
        assert len(bars) == expected
    assert (await store.list_daily(instruments["C"].id))[0].close == 10.5
