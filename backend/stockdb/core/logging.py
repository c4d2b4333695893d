"""
Logging configuration shared by the API, the Celery worker and scripts.

Everything goes to stdout as plain text; container runtimes collect it there.
"""

import logging
import sys
from typing import Optional

from stockdb.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Noisy libraries are held at these levels regardless of LOG_LEVEL
THIRD_PARTY_LEVELS = {
    "uvicorn": logging.INFO,
    "celery": logging.INFO,
    "sqlalchemy": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "yfinance": logging.WARNING,
    "urllib3": logging.WARNING,
}


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; ``level`` overrides settings.LOG_LEVEL."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name, lib_level in THIRD_PARTY_LEVELS.items():
        logging.getLogger(name).setLevel(lib_level)
    if settings.DB_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
