"""
Unit tests for the error taxonomy and its HTTP mapping.
"""

from __future__ import annotations

import pytest
from fastapi import HTTPException

from coworking_scheduler.errors import (
    IllegalTransition,
    InvalidDuration,
    PermissionDenied,
    ReservationNotFound,
    ResourceNotFound,
    ResourceUnavailable,
    SchedulingError,
    SlotConflict,
    StoreUnavailable,
    UnsupportedDurationUnit,
    ValidationError,
)
from coworking_scheduler.routes._errors import (
    raise_http_error,
    require_user_or_401,
    status_code_for,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error,expected",
    [
        (ValidationError.for_field("guests", "Guests must be at least 1"), 400),
        (UnsupportedDurationUnit("fortnight"), 400),
        (InvalidDuration("Duration must be positive"), 400),
        (PermissionDenied("Not your reservation"), 403),
        (ResourceNotFound(7), 404),
        (ReservationNotFound(9), 404),
        (SlotConflict([{"start_time": "10:00", "end_time": "11:00"}]), 409),
        (IllegalTransition("cancelled", "confirmed"), 409),
        (ResourceUnavailable(7), 409),
        (StoreUnavailable("database unreachable"), 503),
        (SchedulingError("unexpected"), 500),
    ],
)
def test_status_code_for(error: SchedulingError, expected: int) -> None:
    assert status_code_for(error) == expected


@pytest.mark.unit
def test_validation_error_lists_fields() -> None:
    error = ValidationError(
        "Invalid reservation request",
        [
            {"field": "end_time", "message": "End time must be after start time"},
            {"field": "guests", "message": "Guests must be at least 1"},
        ],
    )

    assert error.to_dict() == {
        "error": "Invalid reservation request",
        "code": "VALIDATION_ERROR",
        "details": [
            {"field": "end_time", "message": "End time must be after start time"},
            {"field": "guests", "message": "Guests must be at least 1"},
        ],
    }


@pytest.mark.unit
def test_unsupported_unit_is_a_validation_error_on_duration_type() -> None:
    error = UnsupportedDurationUnit("fortnight")

    assert isinstance(error, ValidationError)
    assert error.details == [{"field": "duration_type", "message": error.message}]


@pytest.mark.unit
def test_slot_conflict_exposes_only_ranges() -> None:
    error = SlotConflict(
        [
            {"start_time": "10:00", "end_time": "11:00"},
            {"start_time": "11:30", "end_time": "12:00"},
        ]
    )

    payload = error.to_dict()
    assert payload["code"] == "SLOT_CONFLICT"
    assert "10:00-11:00, 11:30-12:00" in payload["error"]
    assert payload["conflicts"] == [
        {"start_time": "10:00", "end_time": "11:00"},
        {"start_time": "11:30", "end_time": "12:00"},
    ]


@pytest.mark.unit
def test_illegal_transition_keeps_states() -> None:
    error = IllegalTransition("completed", "cancelled")

    assert error.current == "completed"
    assert error.target == "cancelled"
    assert error.to_dict()["code"] == "ILLEGAL_TRANSITION"


@pytest.mark.unit
def test_raise_http_error_carries_payload() -> None:
    with pytest.raises(HTTPException) as exc_info:
        raise_http_error(ReservationNotFound(3))

    assert exc_info.value.status_code == 404
    assert exc_info.value.detail == {
        "error": "Reservation 3 not found",
        "code": "RESERVATION_NOT_FOUND",
    }


@pytest.mark.unit
def test_require_user_or_401() -> None:
    assert require_user_or_401("alice") == "alice"

    for missing in (None, ""):
        with pytest.raises(HTTPException) as exc_info:
            require_user_or_401(missing)
        assert exc_info.value.status_code == 401
