from sqlalchemy import Column, Date, ForeignKey, Integer, Numeric, BigInteger, UniqueConstraint
from stockdb.core.database import Base
from stockdb.models.base import IdMixin, TimestampMixin

class DailyBar(Base, IdMixin, TimestampMixin):
    """
    Daily OHLCV data.
    One row per (instrument, calendar date); re-ingestion overwrites in place.
    """
    __tablename__ = "prices_daily"
    __table_args__ = (
        UniqueConstraint("instrument_id", "date", name="uq_prices_daily_instrument_date"),
    )

    instrument_id = Column(Integer, ForeignKey("instruments.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    open = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    high = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    low = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    close = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    adj_close = Column(Numeric(14, 4, asdecimal=False), nullable=False)
    volume = Column(BigInteger, nullable=False)
