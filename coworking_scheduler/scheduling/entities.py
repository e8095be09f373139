"""Domain records shared by the scheduling core, the stores, and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from coworking_scheduler.config import DEFAULT_CLOSE_TIME, DEFAULT_OPEN_TIME
from coworking_scheduler.errors import ValidationError
from coworking_scheduler.scheduling.lifecycle import (
    OCCUPYING_STATUSES,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
)
from coworking_scheduler.scheduling.pricing import DurationUnit, RateTable
from coworking_scheduler.scheduling.time_range import TimeRange
from coworking_scheduler.utils.datetime import time_to_minutes

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


@dataclass(frozen=True)
class OpeningHours:
    """
    Opening window for one weekday, in minutes since midnight.

    ``closed=True`` (or ``open == close``) means no bookable time that day.
    """

    open: int = 0
    close: int = 0
    closed: bool = False

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["OpeningHours"]:
        if data is None:
            return None
        if data.get("closed"):
            return cls(closed=True)
        try:
            open_min = time_to_minutes(data["open"])
            close_min = time_to_minutes(data["close"])
        except (KeyError, ValueError) as e:
            raise ValidationError.for_field("opening_hours", f"Invalid opening hours: {e}")
        if close_min < open_min:
            raise ValidationError.for_field(
                "opening_hours", "Closing time must not be before opening time"
            )
        return cls(open=open_min, close=close_min)

    @property
    def is_closed(self) -> bool:
        return self.closed or self.open == self.close


DEFAULT_HOURS = OpeningHours(
    open=time_to_minutes(DEFAULT_OPEN_TIME), close=time_to_minutes(DEFAULT_CLOSE_TIME)
)


@dataclass(frozen=True)
class Resource:
    """A bookable space, as seen (read-only) by the scheduling core."""

    id: int
    name: str
    capacity: int
    rate_table: RateTable
    available: bool = True
    opening_hours: dict[str, OpeningHours] = field(default_factory=dict)

    def hours_for(self, day: date) -> OpeningHours:
        """Hours for the weekday of ``day``; the configured default when unset."""
        return self.opening_hours.get(WEEKDAYS[day.weekday()]) or DEFAULT_HOURS

    def opening_window(self, day: date) -> Optional[TimeRange]:
        """Opening window as a range on ``day``, or None when closed that day."""
        hours = self.hours_for(day)
        if hours.is_closed:
            return None
        return TimeRange(day, hours.open, hours.close)


@dataclass(frozen=True)
class Reservation:
    resource_id: int
    requester_id: str
    time_range: TimeRange
    guests: int
    duration_type: DurationUnit
    duration: int
    total_price: Decimal
    status: ReservationStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus = PaymentStatus.PENDING
    notes: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def occupies_slot(self) -> bool:
        return self.status in OCCUPYING_STATUSES

    def evolve(self, **changes: Any) -> "Reservation":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "resource_id": self.resource_id,
            "requester_id": self.requester_id,
            "date": self.time_range.day.isoformat(),
            "start_time": self.time_range.start_time,
            "end_time": self.time_range.end_time,
            "guests": self.guests,
            "duration_type": self.duration_type.value,
            "duration": self.duration,
            "total_price": str(self.total_price),
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "payment_method": self.payment_method.value,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
