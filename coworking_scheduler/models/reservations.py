# models/reservations.py

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.sql import func

from coworking_scheduler.models.base import Base


class Reservation(Base):
    """
    ORM model for a reservation of one resource on one calendar day.

    ``date``, ``start_time`` and ``end_time`` are naive local wall-clock values
    (``HH:MM`` strings, zero-padded so string order is time order). The
    ``(resource_id, date, status)`` index serves the per-day conflict scan
    done inside every atomic insert.
    """

    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_resource_day_status", "resource_id", "date", "status"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource_id = Column(
        Integer, ForeignKey("resources.id", ondelete="CASCADE"), nullable=False
    )
    requester_id = Column(String(64), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    guests = Column(Integer, nullable=False)
    duration_type = Column(String(10), nullable=False)
    duration = Column(Integer, nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, server_default="pending")
    payment_method = Column(String(10), nullable=False)
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
