from stockdb.scheduler.celery_app import app
from stockdb.core.config import settings
from stockdb.core.database import close_db
from stockdb.core.rate_limit import RateLimiter
from stockdb.models.instrument import Instrument
from stockdb.services.bootstrap_service import bootstrap_catalog
from stockdb.services.ingestion_service import IngestionService
from stockdb.services.sweep_service import SweepResult, SweepRunner
import logging
import asyncio

logger = logging.getLogger(__name__)


def build_sweep_runner() -> SweepRunner:
    """Sweep runner wired to the configured provider and request delay."""
    return SweepRunner(
        ingestion=IngestionService(),
        limiter=RateLimiter(settings.PROVIDER_REQUEST_DELAY_SEC),
    )


async def run_bootstrap() -> list[Instrument]:
    try:
        return await bootstrap_catalog(settings.TRACKED_TICKERS)
    finally:
        # Pooled connections are bound to this event loop
        await close_db()


async def _run_daily_async() -> SweepResult:
    try:
        return await build_sweep_runner().run_daily_sweep(settings.TRACKED_TICKERS)
    finally:
        await close_db()


async def _run_intraday_async() -> SweepResult:
    try:
        return await build_sweep_runner().run_intraday_sweep(
            settings.TRACKED_TICKERS, settings.INTRADAY_INTERVAL
        )
    finally:
        await close_db()


@app.task(name="stockdb.tasks.market_data.ingest_daily_bars")
def ingest_daily_bars() -> dict:
    """
    Scheduled task to ingest daily bars for every tracked ticker.
    Runs every DAILY_FETCH_INTERVAL_SEC (12 hours by default).
    """
    logger.info("Starting scheduled daily stock data fetch...")
    result = asyncio.run(_run_daily_async())

    if result.failed:
        logger.error(f"Daily fetch failed for {len(result.failed)} tickers: {sorted(result.failed)}")

    return {"status": "completed", **result.to_dict()}


@app.task(name="stockdb.tasks.market_data.ingest_intraday_bars")
def ingest_intraday_bars() -> dict:
    """
    Scheduled task to ingest intraday bars (INTRADAY_INTERVAL) for every tracked ticker.
    Runs every INTRADAY_FETCH_INTERVAL_SEC (20 minutes by default).
    """
    logger.info("Starting scheduled intraday stock data fetch...")
    result = asyncio.run(_run_intraday_async())

    if result.failed:
        logger.error(f"Intraday fetch failed for {len(result.failed)} tickers: {sorted(result.failed)}")

    return {"status": "completed", **result.to_dict()}
