"""
Startup routine that makes sure the tracked instruments exist in the catalog.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from stockdb.core.config import settings
from stockdb.models.exchange import Exchange
from stockdb.models.instrument import Instrument
from stockdb.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

PLACEHOLDER_KIND = "Common Stock"


@dataclass(frozen=True)
class ExchangeDescriptor:
    mic: str
    name: str
    currency: str
    timezone: str

    @classmethod
    def from_settings(cls) -> "ExchangeDescriptor":
        return cls(
            mic=settings.DEFAULT_EXCHANGE_MIC,
            name=settings.DEFAULT_EXCHANGE_NAME,
            currency=settings.DEFAULT_EXCHANGE_CURRENCY,
            timezone=settings.DEFAULT_EXCHANGE_TIMEZONE,
        )


async def ensure_exchange(catalog: CatalogService, descriptor: ExchangeDescriptor) -> Exchange:
    exchange = await catalog.get_exchange_by_mic(descriptor.mic)
    if exchange is not None:
        return exchange

    exchange = await catalog.create_exchange(
        mic=descriptor.mic,
        name=descriptor.name,
        currency=descriptor.currency,
        timezone=descriptor.timezone,
    )
    logger.info("Created default exchange: %s", exchange.name)
    return exchange


async def bootstrap_catalog(
    tickers: Optional[Iterable[str]] = None,
    descriptor: Optional[ExchangeDescriptor] = None,
    catalog: Optional[CatalogService] = None,
) -> list[Instrument]:
    """
    Idempotently create the default exchange and any missing tracked instruments.

    Existing instruments are left untouched. A failure on one ticker is logged
    and the remaining tickers are still processed. Returns the instruments
    that exist afterwards, in ticker order.
    """
    catalog = catalog or CatalogService()
    descriptor = descriptor or ExchangeDescriptor.from_settings()
    symbols = list(settings.TRACKED_TICKERS if tickers is None else tickers)

    logger.info("Bootstrapping catalog for %s tickers", len(symbols))
    exchange = await ensure_exchange(catalog, descriptor)

    instruments: list[Instrument] = []
    for ticker in symbols:
        try:
            instrument = await catalog.resolve_ticker(ticker)
            if instrument is None:
                symbol = catalog.normalize_ticker(ticker)
                instrument = await catalog.create_instrument(
                    exchange_id=exchange.id,
                    ticker=symbol,
                    name=f"{symbol} Inc.",
                    kind=PLACEHOLDER_KIND,
                )
                logger.info("Created symbol: %s", symbol)
            instruments.append(instrument)
        except Exception:
            logger.exception("Error initializing symbol %s", ticker)

    return instruments
