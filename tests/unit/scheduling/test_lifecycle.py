"""
Unit tests for the reservation status state machine.
"""

from __future__ import annotations

import pytest

from coworking_scheduler.errors import IllegalTransition, ValidationError
from coworking_scheduler.scheduling.lifecycle import (
    OCCUPYING_STATUSES,
    TERMINAL_STATUSES,
    PaymentMethod,
    ReservationStatus,
    can_transition,
    ensure_transition,
    initial_status,
)

S = ReservationStatus


@pytest.mark.unit
@pytest.mark.parametrize(
    "method,expected",
    [("onsite", S.PENDING), ("card", S.PAYMENT_PENDING), ("paypal", S.PAYMENT_PENDING)],
)
def test_initial_status_depends_on_payment_method(method: str, expected: S) -> None:
    assert initial_status(method) is expected


@pytest.mark.unit
def test_unknown_payment_method_is_a_validation_error() -> None:
    with pytest.raises(ValidationError) as exc:
        PaymentMethod.parse("cash")

    assert exc.value.details[0]["field"] == "payment_method"


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,target",
    [
        (S.PAYMENT_PENDING, S.CONFIRMED),
        (S.PAYMENT_PENDING, S.CANCELLED),
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.CANCELLED),
        (S.CONFIRMED, S.COMPLETED),
        (S.CONFIRMED, S.CANCELLED),
    ],
)
def test_allowed_transitions(current: S, target: S) -> None:
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,target",
    [
        (S.CANCELLED, S.CONFIRMED),
        (S.CANCELLED, S.PENDING),
        (S.COMPLETED, S.CANCELLED),
        (S.PENDING, S.COMPLETED),
        (S.PAYMENT_PENDING, S.PENDING),
        (S.CONFIRMED, S.PENDING),
    ],
)
def test_illegal_transitions_raise(current: S, target: S) -> None:
    with pytest.raises(IllegalTransition) as exc:
        ensure_transition(current, target)

    assert exc.value.current == current.value
    assert exc.value.target == target.value


@pytest.mark.unit
def test_terminal_and_occupying_sets() -> None:
    assert TERMINAL_STATUSES == {S.CANCELLED, S.COMPLETED}
    assert S.CANCELLED not in OCCUPYING_STATUSES
    assert S.PAYMENT_PENDING in OCCUPYING_STATUSES
