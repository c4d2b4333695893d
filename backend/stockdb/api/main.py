"""
FastAPI application entry point.

HTTP surface over the instrument catalog, stored price bars and analytics.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from stockdb.core.config import settings
from stockdb.core.database import close_db
from stockdb.core.exceptions import InstrumentNotFound
from stockdb.core.logging import setup_logging

# Setup logging
setup_logging()

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Daily and intraday price history for tracked instruments",
    debug=settings.DEBUG,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InstrumentNotFound)
async def instrument_not_found_handler(request: Request, exc: InstrumentNotFound) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc), "ticker": exc.ticker},
    )


@app.on_event("shutdown")
async def shutdown() -> None:
    """Run on application shutdown."""
    await close_db()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


from stockdb.api.exchanges import router as exchanges_router
from stockdb.api.symbols import router as symbols_router
from stockdb.api.prices import router as prices_router

app.include_router(exchanges_router, prefix="/api/exchanges", tags=["exchanges"])
app.include_router(symbols_router, prefix="/api/symbols", tags=["symbols"])
app.include_router(prices_router, prefix="/api", tags=["prices"])
