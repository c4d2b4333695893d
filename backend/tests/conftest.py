import os

# Settings are read at import time; keep the module-level engine off Postgres.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["PROVIDER_REQUEST_DELAY_SEC"] = "0"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stockdb.api.main import app
from stockdb.core.database import Base, get_db
import stockdb.models  # noqa: F401
from stockdb.services.catalog_service import CatalogService
from stockdb.services.price_store import PriceStore


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'stockdb.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def catalog(session_factory):
    return CatalogService(session_factory=session_factory)


@pytest.fixture
def store(session_factory):
    return PriceStore(session_factory=session_factory)


@pytest.fixture
async def exchange(catalog):
    return await catalog.create_exchange(
        mic="XNAS",
        name="NASDAQ",
        currency="USD",
        timezone="America/New_York",
    )


@pytest.fixture
async def aapl(catalog, exchange):
    return await catalog.create_instrument(
        exchange_id=exchange.id,
        ticker="AAPL",
        name="Apple Inc.",
        kind="Common Stock",
    )


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
