"""
Sequential, rate-limited ingestion sweeps across the tracked instruments.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, Optional

from stockdb.core.rate_limit import RateLimiter
from stockdb.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of one pass of a job over all instruments."""
    job: str
    processed: dict[str, int] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def total_bars(self) -> int:
        return sum(self.processed.values())

    def to_dict(self) -> dict:
        return {
            "job": self.job,
            "processed": dict(self.processed),
            "failed": dict(self.failed),
            "skipped": list(self.skipped),
            "total_bars": self.total_bars,
            "duration_ms": round(self.duration_ms, 2),
        }


class SweepRunner:
    """
    Visit every ticker in order, one at a time, waiting on the rate limiter
    before each provider call.

    A failure for one ticker is logged and recorded and the sweep moves on.
    Setting ``stop_event`` ends the sweep once the current ticker finishes.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        limiter: RateLimiter,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.ingestion = ingestion
        self.limiter = limiter
        self.stop_event = stop_event

    async def run_daily_sweep(self, tickers: Iterable[str]) -> SweepResult:
        return await self._sweep(
            "daily",
            tickers,
            self.ingestion.fetch_and_store_daily_bars,
        )

    async def run_intraday_sweep(self, tickers: Iterable[str], interval: str) -> SweepResult:
        async def ingest(ticker: str) -> int:
            return await self.ingestion.fetch_and_store_intraday_bars(ticker, interval)

        return await self._sweep(f"intraday ({interval})", tickers, ingest)

    async def _sweep(
        self,
        job: str,
        tickers: Iterable[str],
        ingest: Callable[[str], Awaitable[int]],
    ) -> SweepResult:
        symbols = list(tickers)
        result = SweepResult(job=job)
        started = time.monotonic()
        logger.info("Starting %s sweep over %s tickers", job, len(symbols))

        for index, ticker in enumerate(symbols):
            if self.stop_event is not None and self.stop_event.is_set():
                result.skipped = symbols[index:]
                logger.warning("Stopping %s sweep early; skipped %s", job, result.skipped)
                break

            await self.limiter.wait()
            try:
                count = await ingest(ticker)
            except Exception as exc:
                logger.exception("Error fetching %s data for %s", job, ticker)
                result.failed[ticker] = str(exc) or type(exc).__name__
                continue

            result.processed[ticker] = count
            if count > 0:
                logger.info("Fetched %s %s records for %s", count, job, ticker)
            else:
                logger.warning("No %s records fetched for %s", job, ticker)

        result.duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Completed %s sweep: %s bars, %s failed",
            job,
            result.total_bars,
            len(result.failed),
        )
        return result
