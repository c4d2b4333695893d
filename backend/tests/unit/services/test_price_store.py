"""Tests for PriceStore upserts and range reads against SQLite."""

import asyncio
from datetime import date, datetime

import pytest

from stockdb.core.exceptions import PersistenceFailure
from stockdb.services.price_store import PriceStore


def _daily(day, close=100.0, **overrides):
    bar = {
        "date": day,
        "open": close - 1,
        "high": close + 1,
        "low": close - 2,
        "close": close,
        "adj_close": close,
        "volume": 1_000,
    }
    bar.update(overrides)
    return bar


def _intraday(ts, close=100.0, **overrides):
    bar = {
        "timestamp": ts,
        "open": close,
        "high": close + 0.5,
        "low": close - 0.5,
        "close": close,
        "volume": 50,
    }
    bar.update(overrides)
    return bar


# --- daily upserts ---

async def test_upsert_daily_inserts_new_bar(store, aapl):
    bar_id = await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2)))

    bars = await store.list_daily(aapl.id)
    assert [b.id for b in bars] == [bar_id]
    assert bars[0].date == date(2024, 1, 2)
    assert bars[0].close == 100.0


async def test_upsert_daily_overwrites_existing_bar_and_keeps_id(store, aapl):
    first_id = await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2), close=100.0))
    second_id = await store.upsert_daily(
        aapl.id, _daily(date(2024, 1, 2), close=105.5, volume=2_000)
    )

    assert second_id == first_id
    bars = await store.list_daily(aapl.id)
    assert len(bars) == 1
    assert bars[0].close == 105.5
    assert bars[0].volume == 2_000


async def test_upsert_daily_same_batch_twice_is_idempotent(store, aapl):
    batch = [_daily(date(2024, 1, d), close=100.0 + d) for d in (2, 3, 4)]
    ids = [await store.upsert_daily(aapl.id, bar) for bar in batch]
    again = [await store.upsert_daily(aapl.id, bar) for bar in batch]

    assert again == ids
    bars = await store.list_daily(aapl.id)
    assert sorted(b.date for b in bars) == [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4)]


async def test_concurrent_upserts_on_same_key_leave_one_row(store, aapl):
    bars = [_daily(date(2024, 1, 2), close=100.0 + i) for i in range(10)]

    ids = await asyncio.gather(*(store.upsert_daily(aapl.id, bar) for bar in bars))

    assert len(set(ids)) == 1
    stored = await store.list_daily(aapl.id)
    assert [b.id for b in stored] == [ids[0]]
    assert stored[0].close in {bar["close"] for bar in bars}


async def test_concurrent_intraday_upserts_on_same_key_leave_one_row(store, aapl):
    ts = datetime(2024, 1, 2, 10, 0)
    ids = await asyncio.gather(
        *(store.upsert_intraday(aapl.id, _intraday(ts, close=10.0 + i)) for i in range(10))
    )

    assert len(set(ids)) == 1
    assert len(await store.list_intraday(aapl.id)) == 1


async def test_upsert_daily_keys_are_per_instrument(store, catalog, exchange, aapl):
    msft = await catalog.create_instrument(exchange.id, "MSFT", "Microsoft", "Common Stock")

    aapl_id = await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2)))
    msft_id = await store.upsert_daily(msft.id, _daily(date(2024, 1, 2)))

    assert aapl_id != msft_id
    assert len(await store.list_daily(aapl.id)) == 1
    assert len(await store.list_daily(msft.id)) == 1


async def test_upsert_daily_missing_field_raises_key_error(store, aapl):
    bar = _daily(date(2024, 1, 2))
    del bar["adj_close"]
    with pytest.raises(KeyError):
        await store.upsert_daily(aapl.id, bar)


async def test_upsert_daily_storage_error_raises_persistence_failure(store, aapl):
    bar = _daily(date(2024, 1, 2))
    bar["close"] = None
    with pytest.raises(PersistenceFailure, match="prices_daily"):
        await store.upsert_daily(aapl.id, bar)
    assert await store.list_daily(aapl.id) == []


async def test_get_daily_returns_stored_bar(store, aapl):
    bar_id = await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2), close=99.0))
    bar = await store.get_daily(bar_id)
    assert bar.instrument_id == aapl.id
    assert bar.close == 99.0


async def test_get_daily_unknown_id_returns_none(store):
    assert await store.get_daily(12345) is None


async def test_upsert_with_injected_session_is_visible_before_commit(session_factory, aapl):
    async with session_factory() as session:
        store = PriceStore(session=session)
        bar_id = await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2)))
        bar = await store.get_daily(bar_id)
        assert bar.date == date(2024, 1, 2)
        await session.rollback()

    assert await PriceStore(session_factory=session_factory).list_daily(aapl.id) == []


# --- intraday upserts ---

async def test_upsert_intraday_overwrites_same_timestamp(store, aapl):
    ts = datetime(2024, 1, 2, 10, 0)
    first_id = await store.upsert_intraday(aapl.id, _intraday(ts, close=10.0))
    second_id = await store.upsert_intraday(aapl.id, _intraday(ts, close=11.0))

    assert first_id == second_id
    bars = await store.list_intraday(aapl.id)
    assert len(bars) == 1
    assert bars[0].close == 11.0
    assert bars[0].timestamp == ts


async def test_upsert_intraday_distinct_timestamps_create_rows(store, aapl):
    for minute in range(3):
        await store.upsert_intraday(aapl.id, _intraday(datetime(2024, 1, 2, 10, minute)))
    assert len(await store.list_intraday(aapl.id)) == 3


# --- range reads ---

async def test_find_daily_since_is_inclusive(store, aapl):
    for d in range(1, 6):
        await store.upsert_daily(aapl.id, _daily(date(2024, 1, d)))

    bars = await store.find_daily_since(aapl.id, date(2024, 1, 3))
    assert sorted(b.date for b in bars) == [date(2024, 1, 3), date(2024, 1, 4), date(2024, 1, 5)]


async def test_find_daily_since_after_last_bar_is_empty(store, aapl):
    await store.upsert_daily(aapl.id, _daily(date(2024, 1, 2)))
    assert await store.find_daily_since(aapl.id, date(2024, 2, 1)) == []


async def test_find_intraday_since_is_inclusive(store, aapl):
    for minute in (0, 1, 2):
        await store.upsert_intraday(aapl.id, _intraday(datetime(2024, 1, 2, 10, minute)))

    bars = await store.find_intraday_since(aapl.id, datetime(2024, 1, 2, 10, 1))
    assert sorted(b.timestamp for b in bars) == [
        datetime(2024, 1, 2, 10, 1),
        datetime(2024, 1, 2, 10, 2),
    ]
