from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockdb.core.database import get_db
from stockdb.services.catalog_service import CatalogService
from stockdb.services.price_store import PriceStore

router = APIRouter()


# ---------- Pydantic Schemas ----------

class InstrumentCreate(BaseModel):
    exchange_id: int
    ticker: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=255)
    kind: str = Field(default="Common Stock", max_length=50)


class InstrumentResponse(BaseModel):
    id: int
    exchange_id: int
    ticker: str
    name: str
    kind: str

    class Config:
        from_attributes = True


class DailyBarSchema(BaseModel):
    id: int
    instrument_id: int
    date: date
    open: float
    high: float
    low: float
    close: float
    adj_close: float
    volume: int

    class Config:
        from_attributes = True


# ---------- Endpoints ----------

@router.get("", response_model=list[InstrumentResponse])
async def list_symbols(db: AsyncSession = Depends(get_db)):
    service = CatalogService(session=db)
    return await service.list_instruments()


@router.post("", response_model=InstrumentResponse, status_code=status.HTTP_201_CREATED)
async def create_symbol(
    payload: InstrumentCreate,
    db: AsyncSession = Depends(get_db),
):
    service = CatalogService(session=db)
    if await service.get_exchange(payload.exchange_id) is None:
        raise HTTPException(status_code=404, detail="Exchange not found")
    try:
        return await service.create_instrument(
            exchange_id=payload.exchange_id,
            ticker=payload.ticker,
            name=payload.name,
            kind=payload.kind,
        )
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=409,
            detail=f"Symbol {payload.ticker.upper()} already exists on exchange {payload.exchange_id}",
        )


@router.get("/{symbol_id}/prices", response_model=list[DailyBarSchema])
async def list_symbol_prices(
    symbol_id: int,
    db: AsyncSession = Depends(get_db),
):
    """All stored daily bars for the instrument, oldest first."""
    if await CatalogService(session=db).get_instrument(symbol_id) is None:
        raise HTTPException(status_code=404, detail="Symbol not found")
    bars = await PriceStore(session=db).list_daily(symbol_id)
    return sorted(bars, key=lambda b: b.date)
