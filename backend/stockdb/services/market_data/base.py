from abc import ABC, abstractmethod
import pandas as pd

DAILY_COLUMNS = ["symbol", "date", "open", "high", "low", "close", "adj_close", "volume"]
INTRADAY_COLUMNS = ["symbol", "timestamp", "open", "high", "low", "close", "volume"]


def empty_daily_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=DAILY_COLUMNS)


def empty_intraday_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=INTRADAY_COLUMNS)


class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Providers report data unavailability (transport errors, provider-side
    errors, unparseable payloads) by returning an empty DataFrame. They only
    raise for conditions that are truly exceptional.
    """

    @abstractmethod
    async def fetch_daily_bars(self, symbol: str) -> pd.DataFrame:
        """
        Fetch recent daily OHLCV bars for one symbol.
        Returns DataFrame with columns: [symbol, date, open, high, low, close, adj_close, volume]
        """
        pass

    @abstractmethod
    async def fetch_intraday_bars(self, symbol: str, interval: str) -> pd.DataFrame:
        """
        Fetch recent fixed-interval intraday bars for one symbol.
        Returns DataFrame with columns: [symbol, timestamp, open, high, low, close, volume]
        with naive exchange-local timestamps.
        """
        pass
