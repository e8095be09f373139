"""
Reservation status state machine.

    payment_pending ──> confirmed | cancelled
    pending         ──> confirmed | cancelled
    confirmed       ──> completed | cancelled

``cancelled`` and ``completed`` are terminal. There is no way back.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from coworking_scheduler.errors import IllegalTransition, ValidationError


class ReservationStatus(str, Enum):
    PAYMENT_PENDING = "payment_pending"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    ONSITE = "onsite"
    CARD = "card"
    PAYPAL = "paypal"

    @classmethod
    def parse(cls, value: Any) -> "PaymentMethod":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ValidationError.for_field(
                "payment_method", f"Unsupported payment method: {value!r}"
            ) from None


ALLOWED_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PAYMENT_PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

# Statuses whose reservations hold their calendar slot
OCCUPYING_STATUSES = frozenset(
    {
        ReservationStatus.PAYMENT_PENDING,
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
        ReservationStatus.COMPLETED,
    }
)

# Statuses in which the owner may still move the reservation to another slot
RESCHEDULABLE_STATUSES = frozenset(
    {
        ReservationStatus.PAYMENT_PENDING,
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED,
    }
)


def initial_status(payment_method: PaymentMethod | str) -> ReservationStatus:
    """Onsite payment starts ``pending``; card and PayPal wait for the provider."""
    if PaymentMethod.parse(payment_method) is PaymentMethod.ONSITE:
        return ReservationStatus.PENDING
    return ReservationStatus.PAYMENT_PENDING


def can_transition(current: ReservationStatus, target: ReservationStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: ReservationStatus, target: ReservationStatus) -> None:
    """
    Raises:
        IllegalTransition: If ``target`` is not reachable from ``current``.
    """
    if not can_transition(current, target):
        raise IllegalTransition(current.value, target.value)
