"""
Error taxonomy for ingestion, storage and queries.
"""


class StockDbError(Exception):
    """Base class for application errors."""


class InstrumentNotFound(StockDbError, LookupError):
    """
    Raised when a ticker cannot be resolved to a known instrument.

    Query and ingestion entry points raise it instead of returning empty
    data, so callers can tell "no instrument" apart from "no rows".
    """

    def __init__(self, ticker: str) -> None:
        self.ticker = ticker
        super().__init__(f"Instrument not found: {ticker}")


class FetchUnavailable(StockDbError):
    """Raised by a provider when the upstream returned no usable data."""


class PersistenceFailure(StockDbError):
    """Raised when a price bar could not be written to the store."""
