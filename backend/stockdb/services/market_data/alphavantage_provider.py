import asyncio
import json
import logging
from typing import Any, Optional

import httpx
import pandas as pd

from stockdb.core.config import settings
from stockdb.core.exceptions import FetchUnavailable
from stockdb.services.market_data.base import (
    DAILY_COLUMNS,
    INTRADAY_COLUMNS,
    MarketDataProvider,
    empty_daily_frame,
    empty_intraday_frame,
)

logger = logging.getLogger(__name__)


class AlphaVantageProvider(MarketDataProvider):
    """
    Alpha Vantage TIME_SERIES_DAILY / TIME_SERIES_INTRADAY provider.

    The free tier answers over-quota requests with HTTP 200 and a "Note" or
    "Information" message instead of a time series; those responses are
    treated as no data.
    """

    FIELD_MAP = {
        "1. open": "open",
        "2. high": "high",
        "3. low": "low",
        "4. close": "close",
        "5. volume": "volume",
    }
    ERROR_KEYS = ("Error Message", "Note", "Information")
    DAILY_SERIES_KEY = "Time Series (Daily)"
    DATE_FORMAT = "%Y-%m-%d"
    TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_sec: float | None = None,
        max_retries: int | None = None,
        backoff_sec: float | None = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = settings.ALPHA_VANTAGE_API_KEY if api_key is None else api_key
        self.base_url = settings.ALPHA_VANTAGE_API_URL if base_url is None else base_url
        self.timeout_sec = settings.PROVIDER_TIMEOUT_SEC if timeout_sec is None else timeout_sec
        self.max_retries = settings.PROVIDER_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_sec = (
            settings.PROVIDER_RETRY_BACKOFF_SEC if backoff_sec is None else backoff_sec
        )
        self._client = client

    async def fetch_daily_bars(self, symbol: str) -> pd.DataFrame:
        params = {
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "apikey": self.api_key,
        }
        try:
            series = await self._get_time_series(params, self.DAILY_SERIES_KEY)
            df = self._frame_from_series(symbol, series, "date", self.DATE_FORMAT)
        except FetchUnavailable as exc:
            logger.warning("Error fetching daily data for %s: %s", symbol, exc)
            return empty_daily_frame()

        if df.empty:
            return empty_daily_frame()
        df["date"] = df["date"].dt.date
        # TIME_SERIES_DAILY carries no adjusted close on the free tier
        df["adj_close"] = df["close"]
        return df[DAILY_COLUMNS]

    async def fetch_intraday_bars(self, symbol: str, interval: str) -> pd.DataFrame:
        params = {
            "function": "TIME_SERIES_INTRADAY",
            "symbol": symbol,
            "interval": interval,
            "apikey": self.api_key,
        }
        try:
            series = await self._get_time_series(params, f"Time Series ({interval})")
            df = self._frame_from_series(symbol, series, "timestamp", self.TIMESTAMP_FORMAT)
        except FetchUnavailable as exc:
            logger.warning("Error fetching intraday data for %s: %s", symbol, exc)
            return empty_intraday_frame()

        if df.empty:
            return empty_intraday_frame()
        return df[INTRADAY_COLUMNS]

    async def _get_time_series(self, params: dict[str, str], series_key: str) -> dict[str, Any]:
        response_text = await self._fetch_with_retry(params)
        data = self._safe_json(response_text)
        if not isinstance(data, dict):
            raise FetchUnavailable("response is not a JSON object")

        for key in self.ERROR_KEYS:
            if key in data:
                raise FetchUnavailable(f"{key}: {data[key]}")

        series = data.get(series_key)
        if not isinstance(series, dict):
            raise FetchUnavailable(f"'{series_key}' missing from response")
        return series

    async def _fetch_with_retry(self, params: dict[str, str]) -> str:
        if self._client is not None:
            return await self._request(self._client, params)
        async with httpx.AsyncClient(timeout=self.timeout_sec) as client:
            return await self._request(client, params)

    async def _request(self, client: httpx.AsyncClient, params: dict[str, str]) -> str:
        # one initial request plus up to max_retries retries
        attempts = max(self.max_retries, 0) + 1
        for attempt in range(1, attempts + 1):
            try:
                resp = await client.get(self.base_url, params=params)
                resp.raise_for_status()
                return resp.text
            except httpx.HTTPError as exc:
                if attempt >= attempts:
                    raise FetchUnavailable(f"request failed: {exc}") from exc
                await _sleep_with_backoff(self.backoff_sec, attempt)
        raise FetchUnavailable("request failed")

    def _safe_json(self, response_text: str) -> Any:
        try:
            return json.loads(response_text)
        except json.JSONDecodeError:
            return None

    def _frame_from_series(
        self,
        symbol: str,
        series: dict[str, Any],
        key_column: str,
        key_format: str,
    ) -> pd.DataFrame:
        if not series:
            return pd.DataFrame()

        try:
            df = pd.DataFrame.from_dict(series, orient="index").rename(columns=self.FIELD_MAP)
            missing = set(self.FIELD_MAP.values()) - set(df.columns)
            if missing:
                raise FetchUnavailable(f"fields missing from series: {sorted(missing)}")

            df.index = pd.to_datetime(df.index, format=key_format)
            for column in ("open", "high", "low", "close"):
                df[column] = df[column].astype(float)
            df["volume"] = df["volume"].astype("int64")
        except (TypeError, ValueError) as exc:
            raise FetchUnavailable(f"unparseable series: {exc}") from exc

        df.index.name = key_column
        df = df.reset_index()
        df["symbol"] = symbol
        return df


async def _sleep_with_backoff(base: float, attempt: int) -> None:
    delay = base * (2 ** (attempt - 1))
    if delay > 0:
        await asyncio.sleep(delay)
