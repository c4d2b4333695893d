import asyncio
import logging

from celery import Celery
from celery.signals import worker_ready

from stockdb.core.config import settings
from stockdb.core.logging import setup_logging

logger = logging.getLogger(__name__)

app = Celery("stockdb")
app.conf.broker_url = settings.CELERY_BROKER_URL
app.conf.result_backend = settings.CELERY_RESULT_BACKEND
app.conf.timezone = settings.CELERY_TIMEZONE
app.conf.enable_utc = False
# Sweeps are sequential; one task at a time per worker process
app.conf.worker_prefetch_multiplier = 1

app.conf.include = ["stockdb.tasks.market_data"]

app.conf.beat_schedule = {
    "ingest-daily-bars": {
        "task": "stockdb.tasks.market_data.ingest_daily_bars",
        "schedule": settings.DAILY_FETCH_INTERVAL_SEC,
    },
    "ingest-intraday-bars": {
        "task": "stockdb.tasks.market_data.ingest_intraday_bars",
        "schedule": settings.INTRADAY_FETCH_INTERVAL_SEC,
    },
}


@worker_ready.connect
def bootstrap_on_worker_ready(**kwargs) -> None:
    """Create the default exchange and tracked instruments before the first sweep."""
    from stockdb.tasks.market_data import run_bootstrap

    setup_logging()
    try:
        instruments = asyncio.run(run_bootstrap())
        logger.info("Catalog ready with %s tracked instruments", len(instruments))
    except Exception:
        logger.exception("Catalog bootstrap failed")
