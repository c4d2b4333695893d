from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockdb.api.symbols import InstrumentResponse
from stockdb.core.database import get_db
from stockdb.services.catalog_service import CatalogService

router = APIRouter()


# Schemas

class ExchangeCreate(BaseModel):
    mic: str = Field(..., min_length=1, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    currency: str = Field(..., min_length=1, max_length=10)
    timezone: str = Field(..., min_length=1, max_length=50)


class ExchangeResponse(BaseModel):
    id: int
    mic: str
    name: str
    currency: str
    timezone: str

    class Config:
        from_attributes = True


# Endpoints

@router.get("", response_model=list[ExchangeResponse])
async def list_exchanges(db: AsyncSession = Depends(get_db)):
    service = CatalogService(session=db)
    return await service.list_exchanges()


@router.post("", response_model=ExchangeResponse, status_code=status.HTTP_201_CREATED)
async def create_exchange(
    payload: ExchangeCreate,
    db: AsyncSession = Depends(get_db),
):
    service = CatalogService(session=db)
    try:
        return await service.create_exchange(
            mic=payload.mic,
            name=payload.name,
            currency=payload.currency,
            timezone=payload.timezone,
        )
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=409, detail=f"Exchange {payload.mic} already exists")


@router.get("/{exchange_id}/symbols", response_model=list[InstrumentResponse])
async def list_exchange_symbols(
    exchange_id: int,
    db: AsyncSession = Depends(get_db),
):
    service = CatalogService(session=db)
    if await service.get_exchange(exchange_id) is None:
        raise HTTPException(status_code=404, detail="Exchange not found")
    return await service.list_instruments_by_exchange(exchange_id)
