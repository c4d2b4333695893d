from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint
from stockdb.core.database import Base
from stockdb.models.base import IdMixin, TimestampMixin

class Instrument(Base, IdMixin, TimestampMixin):
    """
    Tradable ticker listed on an exchange.
    Price bars reference instruments by id, never by ticker.
    """
    __tablename__ = "instruments"
    __table_args__ = (
        UniqueConstraint("exchange_id", "ticker", name="uq_instruments_exchange_ticker"),
    )

    exchange_id = Column(Integer, ForeignKey("exchanges.id"), nullable=False, index=True)
    ticker = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    kind = Column(String(50), nullable=False)
