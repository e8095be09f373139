"""SQLAlchemy model for bookable coworking spaces."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from coworking_scheduler.models.base import Base


class Resource(Base):
    """
    ORM model for a bookable space.

    Rates are stored per unit (hour/day/week/month); a zero rate means the unit
    is not offered. ``opening_hours`` maps weekday names to
    ``{"open": "HH:MM", "close": "HH:MM"}`` or ``{"closed": true}``.
    Maintained by the admin side; the scheduling core only reads it.
    """

    __tablename__ = "resources"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    capacity = Column(Integer, nullable=False)
    price_per_hour = Column(Numeric(10, 2), nullable=False, server_default="0")
    price_per_day = Column(Numeric(10, 2), nullable=False, server_default="0")
    price_per_week = Column(Numeric(10, 2), nullable=False, server_default="0")
    price_per_month = Column(Numeric(10, 2), nullable=False, server_default="0")
    available = Column(Boolean, nullable=False, default=True)
    opening_hours = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
