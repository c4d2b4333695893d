from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, BigInteger, UniqueConstraint
from stockdb.core.database import Base
from stockdb.models.base import IdMixin, TimestampMixin

class IntradayBar(Base, IdMixin, TimestampMixin):
    """
    Fixed-interval intraday bars (e.g., 1-minute).
    Timestamps are naive exchange-local times, as reported by the provider.
    """
    __tablename__ = "prices_intraday"
    __table_args__ = (
        UniqueConstraint("instrument_id", "timestamp", name="uq_prices_intraday_instrument_ts"),
    )

    instrument_id = Column(Integer, ForeignKey("instruments.id"), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=False), nullable=False, index=True)
    open = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    high = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    low = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    close = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    volume = Column(BigInteger, nullable=False)
