from sqlalchemy import Column, String
from stockdb.core.database import Base
from stockdb.models.base import IdMixin, TimestampMixin

class Exchange(Base, IdMixin, TimestampMixin):
    """
    Trading venue identified by its ISO 10383 market identifier code.
    """
    __tablename__ = "exchanges"

    mic = Column(String(10), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    currency = Column(String(10), nullable=False)
    timezone = Column(String(50), nullable=False)
