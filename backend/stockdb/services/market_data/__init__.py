from typing import Dict, Type
from stockdb.services.market_data.base import MarketDataProvider
from stockdb.services.market_data.alphavantage_provider import AlphaVantageProvider
from stockdb.services.market_data.yfinance_provider import YFinanceProvider
from stockdb.core.config import settings

PROVIDERS: Dict[str, Type[MarketDataProvider]] = {
    "alphavantage": AlphaVantageProvider,
    "yfinance": YFinanceProvider,
}

def get_market_data_provider(name: str | None = None) -> MarketDataProvider:
    """Factory to get provider instance."""
    provider_name = name or settings.MARKET_DATA_PROVIDER
    provider_class = PROVIDERS.get(provider_name)
    if not provider_class:
        raise ValueError(f"Unknown provider: {provider_name}")

    return provider_class()
