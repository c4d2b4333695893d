"""
Prices API Router.

Daily bar upserts and the "since" range queries over stored bars.
"""
import re
from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from stockdb.api.symbols import DailyBarSchema
from stockdb.core.database import get_db
from stockdb.services.analytics_service import AnalyticsService
from stockdb.services.catalog_service import CatalogService
from stockdb.services.price_store import PriceStore

router = APIRouter()

INTRADAY_SINCE_FORMAT = "%Y-%m-%dT%H:%M:%S"
_INTRADAY_SINCE_SHAPE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")

# ---------- Pydantic Schemas ----------

class DailyBarCreate(BaseModel):
    instrument_id: int
    date: date
    open: float
    high: float
    low: float
    close: float
    adj_close: Optional[float] = None
    volume: int = Field(..., ge=0)


class IntradayBarSchema(BaseModel):
    id: int
    instrument_id: int
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int

    class Config:
        from_attributes = True


class MovingAverageResponse(BaseModel):
    ticker: str
    window: int
    value: Optional[float]
    sufficient_data: bool


# ---------- Endpoints ----------

@router.post("/prices", response_model=DailyBarSchema, status_code=status.HTTP_201_CREATED)
async def upsert_price(
    payload: DailyBarCreate,
    db: AsyncSession = Depends(get_db),
):
    """Store a daily bar; an existing bar for the same date is overwritten in place."""
    if await CatalogService(session=db).get_instrument(payload.instrument_id) is None:
        raise HTTPException(status_code=404, detail="Symbol not found")

    store = PriceStore(session=db)
    record = payload.model_dump(exclude={"instrument_id"})
    if record["adj_close"] is None:
        record["adj_close"] = record["close"]
    bar_id = await store.upsert_daily(payload.instrument_id, record)
    return await store.get_daily(bar_id)


@router.get("/daily/{ticker}", response_model=list[DailyBarSchema])
async def get_daily_prices(
    ticker: str,
    since: date = Query(..., description="Inclusive lower bound, YYYY-MM-DD"),
    db: AsyncSession = Depends(get_db),
):
    """Daily bars on or after `since`, newest first."""
    service = AnalyticsService(
        catalog=CatalogService(session=db),
        store=PriceStore(session=db),
    )
    return await service.daily_since(ticker, since)


@router.get("/intraday/{ticker}", response_model=list[IntradayBarSchema])
async def get_intraday_prices(
    ticker: str,
    since: str = Query(..., description="Inclusive lower bound, YYYY-MM-DDTHH:MM:SS exchange-local"),
    db: AsyncSession = Depends(get_db),
):
    """Intraday bars stamped at or after `since`, newest first."""
    try:
        # strptime alone also takes unpadded fields
        if not _INTRADAY_SINCE_SHAPE.fullmatch(since):
            raise ValueError(since)
        since_ts = datetime.strptime(since, INTRADAY_SINCE_FORMAT)
    except ValueError:
        raise HTTPException(
            status_code=400,
            detail="since must be a local date-time formatted YYYY-MM-DDTHH:MM:SS",
        )
    service = AnalyticsService(
        catalog=CatalogService(session=db),
        store=PriceStore(session=db),
    )
    return await service.intraday_since(ticker, since_ts)


@router.get("/sma/{ticker}", response_model=MovingAverageResponse)
async def get_moving_average(
    ticker: str,
    window: int = Query(default=20, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Simple moving average of the most recent `window` daily closes."""
    service = AnalyticsService(
        catalog=CatalogService(session=db),
        store=PriceStore(session=db),
    )
    value = await service.simple_moving_average(ticker, window)
    return MovingAverageResponse(
        ticker=ticker.upper(),
        window=window,
        value=value,
        sufficient_data=value is not None,
    )
