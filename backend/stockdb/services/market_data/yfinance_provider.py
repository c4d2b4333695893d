import asyncio
import logging

import pandas as pd
import yfinance as yf

from stockdb.services.market_data.base import (
    DAILY_COLUMNS,
    INTRADAY_COLUMNS,
    MarketDataProvider,
    empty_daily_frame,
    empty_intraday_frame,
)

logger = logging.getLogger(__name__)

# Alpha Vantage style interval names -> yfinance interval codes
INTERVAL_MAP = {
    "1min": "1m",
    "5min": "5m",
    "15min": "15m",
    "30min": "30m",
    "60min": "60m",
}

COLS_MAP = {
    "Date": "date",
    "Datetime": "timestamp",
    "Open": "open",
    "High": "high",
    "Low": "low",
    "Close": "close",
    "Adj Close": "adj_close",
    "Volume": "volume",
}


class YFinanceProvider(MarketDataProvider):
    """yfinance provider; no API key, used as an alternative to Alpha Vantage."""

    def __init__(self, daily_period: str = "3mo", intraday_period: str = "1d") -> None:
        self.daily_period = daily_period
        self.intraday_period = intraday_period

    async def fetch_daily_bars(self, symbol: str) -> pd.DataFrame:
        # yfinance is blocking; keep it off the event loop
        return await asyncio.to_thread(self._fetch_daily, symbol)

    async def fetch_intraday_bars(self, symbol: str, interval: str) -> pd.DataFrame:
        return await asyncio.to_thread(self._fetch_intraday, symbol, interval)

    def _fetch_daily(self, symbol: str) -> pd.DataFrame:
        try:
            # auto_adjust=False gives us raw Open/High/Low/Close and an 'Adj Close' column
            hist = yf.Ticker(symbol).history(
                period=self.daily_period,
                interval="1d",
                auto_adjust=False,
            )
        except Exception as e:
            logger.error(f"yfinance daily download failed for {symbol}: {e}")
            return empty_daily_frame()

        if hist is None or hist.empty:
            logger.warning(f"No daily data for {symbol} in yfinance response")
            return empty_daily_frame()

        df = hist.reset_index().rename(columns=COLS_MAP)
        df["date"] = pd.to_datetime(df["date"]).dt.date
        if "adj_close" not in df.columns:
            df["adj_close"] = df["close"]
        df["symbol"] = symbol
        return df[DAILY_COLUMNS].dropna()

    def _fetch_intraday(self, symbol: str, interval: str) -> pd.DataFrame:
        yf_interval = INTERVAL_MAP.get(interval, interval)
        try:
            hist = yf.Ticker(symbol).history(
                period=self.intraday_period,
                interval=yf_interval,
                auto_adjust=False,
            )
        except Exception as e:
            logger.error(f"yfinance intraday download failed for {symbol}: {e}")
            return empty_intraday_frame()

        if hist is None or hist.empty:
            logger.warning(f"No intraday data for {symbol} in yfinance response")
            return empty_intraday_frame()

        df = hist.reset_index().rename(columns=COLS_MAP)
        # Index is tz-aware in the exchange's zone; keep wall-clock time only
        timestamps = pd.to_datetime(df["timestamp"])
        if timestamps.dt.tz is not None:
            timestamps = timestamps.dt.tz_localize(None)
        df["timestamp"] = timestamps
        df["symbol"] = symbol
        return df[INTRADAY_COLUMNS].dropna()
