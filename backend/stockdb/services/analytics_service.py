import logging
from datetime import date, datetime
from typing import Optional

from stockdb.core.exceptions import InstrumentNotFound
from stockdb.models.daily_bar import DailyBar
from stockdb.models.instrument import Instrument
from stockdb.models.intraday_bar import IntradayBar
from stockdb.services.catalog_service import CatalogService
from stockdb.services.price_store import PriceStore

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Moving averages and range queries over stored price bars."""

    def __init__(
        self,
        catalog: Optional[CatalogService] = None,
        store: Optional[PriceStore] = None,
    ):
        self.catalog = catalog or CatalogService()
        self.store = store or PriceStore()

    async def simple_moving_average(self, ticker: str, window: int) -> Optional[float]:
        """
        Mean close of the ``window`` most recent daily bars.

        Returns None when fewer than ``window`` bars are stored; a partial
        average is never returned.
        """
        if window < 1:
            raise ValueError(f"window must be a positive integer, got {window}")

        instrument = await self._resolve(ticker)
        bars = await self.store.list_daily(instrument.id)
        if len(bars) < window:
            logger.info(
                "Insufficient data for %s SMA(%s): %s bars stored",
                instrument.ticker,
                window,
                len(bars),
            )
            return None

        recent = sorted(bars, key=lambda b: b.date, reverse=True)[:window]
        return sum(float(b.close) for b in recent) / window

    async def daily_since(self, ticker: str, since: date) -> list[DailyBar]:
        """Daily bars dated on or after ``since``, newest first."""
        instrument = await self._resolve(ticker)
        bars = await self.store.find_daily_since(instrument.id, since)
        return sorted(bars, key=lambda b: b.date, reverse=True)

    async def intraday_since(self, ticker: str, since: datetime) -> list[IntradayBar]:
        """Intraday bars stamped at or after ``since``, newest first."""
        instrument = await self._resolve(ticker)
        bars = await self.store.find_intraday_since(instrument.id, since)
        return sorted(bars, key=lambda b: b.timestamp, reverse=True)

    async def _resolve(self, ticker: str) -> Instrument:
        instrument = await self.catalog.resolve_ticker(ticker)
        if instrument is None:
            raise InstrumentNotFound(ticker)
        return instrument
