#!/usr/bin/env python3
"""
Run one ingestion sweep by hand, outside the Celery beat schedule.

Usage:
    python scripts/run_sweep.py [--job daily|intraday] [--tickers AAPL MSFT] [--delay 15]
"""

import asyncio
import logging
import sys
from argparse import ArgumentParser

from stockdb.core.config import settings
from stockdb.core.database import close_db
from stockdb.core.logging import setup_logging
from stockdb.core.rate_limit import RateLimiter
from stockdb.services.bootstrap_service import bootstrap_catalog
from stockdb.services.ingestion_service import IngestionService
from stockdb.services.sweep_service import SweepRunner

logger = logging.getLogger(__name__)


async def run_sweep(job: str, tickers: list[str], delay: float, interval: str) -> int:
    """Bootstrap the catalog, then sweep the tickers once."""
    try:
        await bootstrap_catalog(tickers)

        runner = SweepRunner(
            ingestion=IngestionService(),
            limiter=RateLimiter(delay),
        )
        if job == "daily":
            result = await runner.run_daily_sweep(tickers)
        else:
            result = await runner.run_intraday_sweep(tickers, interval)
    finally:
        await close_db()

    for ticker, count in result.processed.items():
        logger.info(f"  {ticker}: {count} bars")
    for ticker, error in result.failed.items():
        logger.error(f"  {ticker}: FAILED ({error})")

    return result.total_bars


def main():
    parser = ArgumentParser(description="Run a single price ingestion sweep")
    parser.add_argument(
        "--job",
        choices=["daily", "intraday"],
        default="daily",
        help="Which bars to ingest (default: daily)"
    )
    parser.add_argument(
        "--tickers",
        nargs="+",
        default=settings.TRACKED_TICKERS,
        help="Tickers to sweep (default: TRACKED_TICKERS)"
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.PROVIDER_REQUEST_DELAY_SEC,
        help="Seconds between provider calls (default: PROVIDER_REQUEST_DELAY_SEC)"
    )
    parser.add_argument(
        "--interval",
        default=settings.INTRADAY_INTERVAL,
        help="Intraday bar interval (default: INTRADAY_INTERVAL)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override LOG_LEVEL for this run"
    )
    args = parser.parse_args()
    setup_logging(args.log_level)

    result = asyncio.run(run_sweep(args.job, args.tickers, args.delay, args.interval))

    if result > 0:
        logger.info(f"✓ Sweep completed: {result} bars")
        sys.exit(0)
    else:
        logger.error("✗ Sweep stored no bars")
        sys.exit(1)


if __name__ == "__main__":
    main()
