"""Tests for the market data provider registry and the yfinance adapter."""

from datetime import date, datetime

import pandas as pd
import pytest

from stockdb.services.market_data import PROVIDERS, get_market_data_provider
from stockdb.services.market_data import yfinance_provider
from stockdb.services.market_data.alphavantage_provider import AlphaVantageProvider
from stockdb.services.market_data.base import DAILY_COLUMNS, INTRADAY_COLUMNS
from stockdb.services.market_data.yfinance_provider import YFinanceProvider


def test_registry_lists_both_providers():
    assert set(PROVIDERS) == {"alphavantage", "yfinance"}


def test_get_provider_by_name():
    assert isinstance(get_market_data_provider("yfinance"), YFinanceProvider)
    assert isinstance(get_market_data_provider("alphavantage"), AlphaVantageProvider)


def test_get_provider_unknown_name_raises():
    with pytest.raises(ValueError, match="Unknown provider"):
        get_market_data_provider("bloomberg")


class FakeTicker:
    def __init__(self, history):
        self._history = history
        self.calls = []

    def history(self, **kwargs):
        self.calls.append(kwargs)
        if isinstance(self._history, Exception):
            raise self._history
        return self._history


def _patch_ticker(monkeypatch, history):
    ticker = FakeTicker(history)
    monkeypatch.setattr(yfinance_provider.yf, "Ticker", lambda symbol: ticker)
    return ticker


async def test_yfinance_daily_maps_columns(monkeypatch):
    index = pd.DatetimeIndex(
        pd.to_datetime(["2024-01-02", "2024-01-03"]).tz_localize("America/New_York"),
        name="Date",
    )
    history = pd.DataFrame(
        {
            "Open": [1.0, 2.0],
            "High": [1.5, 2.5],
            "Low": [0.5, 1.5],
            "Close": [1.2, 2.2],
            "Adj Close": [1.1, 2.1],
            "Volume": [100, 200],
        },
        index=index,
    )
    ticker = _patch_ticker(monkeypatch, history)

    df = await YFinanceProvider().fetch_daily_bars("AAPL")

    assert list(df.columns) == DAILY_COLUMNS
    assert df["date"].tolist() == [date(2024, 1, 2), date(2024, 1, 3)]
    assert df["adj_close"].tolist() == [1.1, 2.1]
    assert ticker.calls[0]["auto_adjust"] is False


async def test_yfinance_intraday_strips_timezone(monkeypatch):
    index = pd.DatetimeIndex(
        pd.to_datetime(["2024-01-02 09:30", "2024-01-02 09:31"]).tz_localize("America/New_York"),
        name="Datetime",
    )
    history = pd.DataFrame(
        {
            "Open": [1.0, 2.0],
            "High": [1.5, 2.5],
            "Low": [0.5, 1.5],
            "Close": [1.2, 2.2],
            "Volume": [100, 200],
        },
        index=index,
    )
    ticker = _patch_ticker(monkeypatch, history)

    df = await YFinanceProvider().fetch_intraday_bars("AAPL", "1min")

    assert list(df.columns) == INTRADAY_COLUMNS
    assert [ts.to_pydatetime() for ts in df["timestamp"]] == [
        datetime(2024, 1, 2, 9, 30),
        datetime(2024, 1, 2, 9, 31),
    ]
    assert ticker.calls[0]["interval"] == "1m"


async def test_yfinance_download_error_returns_empty_frame(monkeypatch):
    _patch_ticker(monkeypatch, RuntimeError("rate limited"))
    df = await YFinanceProvider().fetch_daily_bars("AAPL")
    assert df.empty
    assert list(df.columns) == DAILY_COLUMNS


async def test_yfinance_empty_history_returns_empty_frame(monkeypatch):
    _patch_ticker(monkeypatch, pd.DataFrame())
    df = await YFinanceProvider().fetch_intraday_bars("AAPL", "5min")
    assert df.empty
    assert list(df.columns) == INTRADAY_COLUMNS
