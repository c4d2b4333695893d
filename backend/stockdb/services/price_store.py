"""
Durable storage for daily and intraday price bars.

Upserts are single ``INSERT ... ON CONFLICT DO UPDATE ... RETURNING id``
statements against the per-instrument unique keys, so two writers can never
create two rows for the same (instrument, date) or (instrument, timestamp),
and an existing row keeps its id when its prices are overwritten.
"""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stockdb.core.database import AsyncSessionLocal
from stockdb.core.exceptions import PersistenceFailure
from stockdb.models.base import utcnow
from stockdb.models.daily_bar import DailyBar
from stockdb.models.intraday_bar import IntradayBar

logger = logging.getLogger(__name__)

DAILY_PRICE_FIELDS = ("open", "high", "low", "close", "adj_close", "volume")
INTRADAY_PRICE_FIELDS = ("open", "high", "low", "close", "volume")

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class PriceStore:
    """Upsert-by-key and range reads for price bars, keyed by instrument id."""

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: async_sessionmaker = AsyncSessionLocal,
    ):
        self.session = session
        self.session_factory = session_factory

    # Writes

    async def upsert_daily(self, instrument_id: int, bar: Mapping[str, Any]) -> int:
        """Insert the bar, or overwrite prices of the bar already stored for its date."""
        values = {"instrument_id": instrument_id, "date": bar["date"]}
        values.update({field: bar[field] for field in DAILY_PRICE_FIELDS})
        return await self._upsert(
            DailyBar,
            values,
            index_elements=["instrument_id", "date"],
            update_fields=DAILY_PRICE_FIELDS,
        )

    async def upsert_intraday(self, instrument_id: int, bar: Mapping[str, Any]) -> int:
        """Insert the bar, or overwrite prices of the bar already stored for its timestamp."""
        values = {"instrument_id": instrument_id, "timestamp": bar["timestamp"]}
        values.update({field: bar[field] for field in INTRADAY_PRICE_FIELDS})
        return await self._upsert(
            IntradayBar,
            values,
            index_elements=["instrument_id", "timestamp"],
            update_fields=INTRADAY_PRICE_FIELDS,
        )

    # Reads

    async def get_daily(self, bar_id: int) -> Optional[DailyBar]:
        async with self._get_session() as session:
            return await session.get(DailyBar, bar_id, populate_existing=True)

    async def list_daily(self, instrument_id: int) -> list[DailyBar]:
        async with self._get_session() as session:
            stmt = select(DailyBar).where(DailyBar.instrument_id == instrument_id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_intraday(self, instrument_id: int) -> list[IntradayBar]:
        async with self._get_session() as session:
            stmt = select(IntradayBar).where(IntradayBar.instrument_id == instrument_id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_daily_since(self, instrument_id: int, since: date) -> list[DailyBar]:
        async with self._get_session() as session:
            stmt = select(DailyBar).where(
                DailyBar.instrument_id == instrument_id,
                DailyBar.date >= since,
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def find_intraday_since(self, instrument_id: int, since: datetime) -> list[IntradayBar]:
        async with self._get_session() as session:
            stmt = select(IntradayBar).where(
                IntradayBar.instrument_id == instrument_id,
                IntradayBar.timestamp >= since,
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # Internals

    async def _upsert(
        self,
        model: Any,
        values: dict[str, Any],
        index_elements: list[str],
        update_fields: tuple[str, ...],
    ) -> int:
        try:
            async with self._get_session() as session:
                insert = self._insert_for(session)
                stmt = insert(model).values(values)
                set_ = {field: getattr(stmt.excluded, field) for field in update_fields}
                set_["updated_at"] = utcnow()
                stmt = stmt.on_conflict_do_update(
                    index_elements=index_elements,
                    set_=set_,
                ).returning(model.id)
                result = await session.execute(stmt)
                return result.scalar_one()
        except SQLAlchemyError as exc:
            key = tuple(values[k] for k in index_elements)
            logger.error("Failed to upsert %s %s: %s", model.__tablename__, key, exc)
            raise PersistenceFailure(f"Failed to upsert {model.__tablename__} {key}") from exc

    @staticmethod
    def _insert_for(session: AsyncSession):
        dialect = session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise PersistenceFailure(f"Upsert not supported for dialect: {dialect}")
        return insert

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
