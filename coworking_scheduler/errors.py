"""
Error taxonomy for the scheduling core.

Every error carries a stable ``code`` that the HTTP layer returns to clients.
Only ``StoreUnavailable`` is treated as a server-side failure; the others are
client errors the caller can act on.
"""

from __future__ import annotations

from typing import Any, Optional


class SchedulingError(Exception):
    """Base class for all scheduling core errors."""

    code = "SCHEDULING_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class ValidationError(SchedulingError):
    """
    Malformed or out-of-range input.

    ``details`` is a list of ``{"field": ..., "message": ...}`` dicts so the
    caller can highlight every offending field at once.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Optional[list[dict[str, str]]] = None) -> None:
        super().__init__(message)
        self.details = details or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [{"field": field, "message": message}])

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "details": self.details}


class UnsupportedDurationUnit(ValidationError):
    code = "UNSUPPORTED_DURATION_UNIT"

    def __init__(self, unit: Any) -> None:
        message = f"Unsupported duration unit: {unit!r}"
        super().__init__(message, [{"field": "duration_type", "message": message}])
        self.unit = unit


class InvalidDuration(ValidationError):
    code = "INVALID_DURATION"

    def __init__(self, message: str) -> None:
        super().__init__(message, [{"field": "duration", "message": message}])


class ResourceNotFound(SchedulingError):
    code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource_id: int) -> None:
        super().__init__(f"Resource {resource_id} not found")
        self.resource_id = resource_id


class ReservationNotFound(SchedulingError):
    code = "RESERVATION_NOT_FOUND"

    def __init__(self, reservation_id: int) -> None:
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class ResourceUnavailable(SchedulingError):
    """The resource is globally disabled for new bookings."""

    code = "RESOURCE_UNAVAILABLE"

    def __init__(self, resource_id: int) -> None:
        super().__init__(f"Resource {resource_id} is not available for booking")
        self.resource_id = resource_id


class SlotConflict(SchedulingError):
    """
    The requested range overlaps existing reservations.

    ``conflicts`` holds the colliding time ranges only (``"HH:MM"`` start/end
    pairs), never the owners of the colliding reservations.
    """

    code = "SLOT_CONFLICT"

    def __init__(self, conflicts: list[dict[str, str]]) -> None:
        ranges = ", ".join(f"{c['start_time']}-{c['end_time']}" for c in conflicts)
        super().__init__(f"Requested slot conflicts with existing reservations: {ranges}")
        self.conflicts = conflicts

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "conflicts": self.conflicts}


class IllegalTransition(SchedulingError):
    code = "ILLEGAL_TRANSITION"

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot transition reservation from {current} to {target}")
        self.current = current
        self.target = target


class PermissionDenied(SchedulingError):
    code = "PERMISSION_DENIED"


class StoreUnavailable(SchedulingError):
    """Persistence layer unreachable. Not recoverable locally; no retry is attempted."""

    code = "STORE_UNAVAILABLE"
