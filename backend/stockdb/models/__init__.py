# Base
from stockdb.models.base import TimestampMixin, IdMixin

# Catalog
from stockdb.models.exchange import Exchange
from stockdb.models.instrument import Instrument

# Market Data
from stockdb.models.daily_bar import DailyBar
from stockdb.models.intraday_bar import IntradayBar

__all__ = [
    "TimestampMixin",
    "IdMixin",
    "Exchange",
    "Instrument",
    "DailyBar",
    "IntradayBar",
]
