import logging
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockdb.core.database import AsyncSessionLocal
from stockdb.models.exchange import Exchange
from stockdb.models.instrument import Instrument

logger = logging.getLogger(__name__)


class CatalogService:
    """Registry of exchanges and the instruments listed on them."""

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: async_sessionmaker = AsyncSessionLocal,
    ):
        self.session = session
        self.session_factory = session_factory

    # Exchanges

    async def list_exchanges(self) -> list[Exchange]:
        async with self._get_session() as session:
            result = await session.execute(select(Exchange).order_by(Exchange.id.asc()))
            return list(result.scalars().all())

    async def get_exchange(self, exchange_id: int) -> Optional[Exchange]:
        async with self._get_session() as session:
            return await session.get(Exchange, exchange_id)

    async def get_exchange_by_mic(self, mic: str) -> Optional[Exchange]:
        async with self._get_session() as session:
            stmt = select(Exchange).where(Exchange.mic == mic.strip().upper())
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def create_exchange(
        self,
        mic: str,
        name: str,
        currency: str,
        timezone: str,
    ) -> Exchange:
        async with self._get_session() as session:
            exchange = Exchange(
                mic=mic.strip().upper(),
                name=name,
                currency=currency,
                timezone=timezone,
            )
            session.add(exchange)
            await session.flush()
            await session.refresh(exchange)
            logger.info("Created exchange %s (%s)", exchange.mic, exchange.name)
            return exchange

    # Instruments

    async def list_instruments(self) -> list[Instrument]:
        async with self._get_session() as session:
            result = await session.execute(select(Instrument).order_by(Instrument.id.asc()))
            return list(result.scalars().all())

    async def list_instruments_by_exchange(self, exchange_id: int) -> list[Instrument]:
        async with self._get_session() as session:
            stmt = (
                select(Instrument)
                .where(Instrument.exchange_id == exchange_id)
                .order_by(Instrument.ticker.asc())
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def get_instrument(self, instrument_id: int) -> Optional[Instrument]:
        async with self._get_session() as session:
            return await session.get(Instrument, instrument_id)

    async def create_instrument(
        self,
        exchange_id: int,
        ticker: str,
        name: str,
        kind: str,
    ) -> Instrument:
        async with self._get_session() as session:
            instrument = Instrument(
                exchange_id=exchange_id,
                ticker=self.normalize_ticker(ticker),
                name=name,
                kind=kind,
            )
            session.add(instrument)
            await session.flush()
            await session.refresh(instrument)
            logger.info("Created instrument %s on exchange %s", instrument.ticker, exchange_id)
            return instrument

    async def resolve_ticker(self, ticker: str) -> Optional[Instrument]:
        """
        Look up an instrument by ticker without side effects.

        Tickers are unique per exchange only; when several exchanges list the
        same ticker, the earliest registered instrument wins.
        """
        symbol = self.normalize_ticker(ticker)
        if not symbol:
            return None
        async with self._get_session() as session:
            stmt = (
                select(Instrument)
                .where(Instrument.ticker == symbol)
                .order_by(Instrument.id.asc())
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    @staticmethod
    def normalize_ticker(ticker: str) -> str:
        return (ticker or "").strip().upper()

    @asynccontextmanager
    async def _get_session(self):
        if self.session is not None:
            yield self.session
        else:
            async with self.session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
