"""
Merges fetched price batches into the price store, one instrument at a time.
"""

import logging
import math
from typing import Any, Optional

import pandas as pd

from stockdb.core.exceptions import FetchUnavailable, InstrumentNotFound
from stockdb.models.instrument import Instrument
from stockdb.services.catalog_service import CatalogService
from stockdb.services.market_data import get_market_data_provider
from stockdb.services.market_data.base import MarketDataProvider
from stockdb.services.price_store import PriceStore

logger = logging.getLogger(__name__)


class IngestionService:
    """
    Fetch bars for one ticker and upsert them into the price store.

    Re-ingesting a batch is idempotent: each bar is upserted on its
    (instrument, date) or (instrument, timestamp) key, so existing rows are
    overwritten in place and keep their id. Each upsert commits on its own;
    a storage failure aborts the rest of the batch but never rolls back
    bars already written.
    """

    def __init__(
        self,
        provider: Optional[MarketDataProvider] = None,
        catalog: Optional[CatalogService] = None,
        store: Optional[PriceStore] = None,
    ):
        self.provider = provider or get_market_data_provider()
        self.catalog = catalog or CatalogService()
        self.store = store or PriceStore()

    async def fetch_and_store_daily_bars(self, ticker: str) -> int:
        """
        Fetch daily bars for ``ticker`` and upsert them.
        Returns the number of bars written; 0 when the provider had no data.
        """
        instrument = await self._resolve(ticker)

        try:
            df = await self.provider.fetch_daily_bars(instrument.ticker)
        except FetchUnavailable as exc:
            logger.warning(f"No daily data available for {instrument.ticker}: {exc}")
            return 0

        if df is None or df.empty:
            logger.warning(f"No daily data returned from provider for {instrument.ticker}")
            return 0

        count = 0
        for _, row in df.iterrows():
            record = self._prepare_daily_record(row)
            if record is None:
                continue
            await self.store.upsert_daily(instrument.id, record)
            count += 1

        logger.info(f"Upserted {count} daily bars for {instrument.ticker}")
        return count

    async def fetch_and_store_intraday_bars(self, ticker: str, interval: str) -> int:
        """
        Fetch ``interval`` intraday bars for ``ticker`` and upsert them.
        Returns the number of bars written; 0 when the provider had no data.
        """
        instrument = await self._resolve(ticker)

        try:
            df = await self.provider.fetch_intraday_bars(instrument.ticker, interval)
        except FetchUnavailable as exc:
            logger.warning(f"No intraday data available for {instrument.ticker}: {exc}")
            return 0

        if df is None or df.empty:
            logger.warning(f"No intraday data returned from provider for {instrument.ticker}")
            return 0

        count = 0
        for _, row in df.iterrows():
            record = self._prepare_intraday_record(row)
            if record is None:
                continue
            await self.store.upsert_intraday(instrument.id, record)
            count += 1

        logger.info(f"Upserted {count} intraday ({interval}) bars for {instrument.ticker}")
        return count

    async def _resolve(self, ticker: str) -> Instrument:
        instrument = await self.catalog.resolve_ticker(ticker)
        if instrument is None:
            raise InstrumentNotFound(ticker)
        return instrument

    def _prepare_daily_record(self, row: pd.Series) -> Optional[dict[str, Any]]:
        """Convert DataFrame row to dictionary for the daily upsert."""
        try:
            if pd.isna(row["date"]):
                raise ValueError("missing date")
            record = {
                "date": pd.Timestamp(row["date"]).date(),
                "open": float(row["open"]),
                "high": float(row["high"]),
                "low": float(row["low"]),
                "close": float(row["close"]),
                "adj_close": float(row["adj_close"]),
                "volume": int(row["volume"]),
            }
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid daily row: {row.to_dict()}: {e}")
            return None
        return record if self._is_valid(record) else None

    def _prepare_intraday_record(self, row: pd.Series) -> Optional[dict[str, Any]]:
        """Convert DataFrame row to dictionary for the intraday upsert."""
        try:
            if pd.isna(row["timestamp"]):
                raise ValueError("missing timestamp")
            record = {
                "timestamp": pd.Timestamp(row["timestamp"]).to_pydatetime().replace(tzinfo=None),
                "open": float(row["open"]),
                "high": float(row["high"]),
                "low": float(row["low"]),
                "close": float(row["close"]),
                "volume": int(row["volume"]),
            }
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid intraday row: {row.to_dict()}: {e}")
            return None
        return record if self._is_valid(record) else None

    def _is_valid(self, record: dict[str, Any]) -> bool:
        prices = [v for k, v in record.items() if k in ("open", "high", "low", "close", "adj_close")]
        if any(math.isnan(p) or math.isinf(p) for p in prices):
            logger.warning(f"Skipping bar with non-finite price: {record}")
            return False
        if record["volume"] < 0:
            logger.warning(f"Skipping bar with negative volume: {record}")
            return False
        return True
