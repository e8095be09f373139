"""
Internal helpers shared by the reservation route handlers.

Translates scheduling errors into HTTP responses and reads the caller's
identity, which an upstream session provider supplies in ``X-User-Id``.
"""

from __future__ import annotations

from typing import NoReturn, Optional

from fastapi import HTTPException, status

from coworking_scheduler.errors import (
    IllegalTransition,
    PermissionDenied,
    ReservationNotFound,
    ResourceNotFound,
    ResourceUnavailable,
    SchedulingError,
    SlotConflict,
    StoreUnavailable,
    ValidationError,
)

STATUS_CODES: list[tuple[type[SchedulingError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (ResourceNotFound, status.HTTP_404_NOT_FOUND),
    (ReservationNotFound, status.HTTP_404_NOT_FOUND),
    (SlotConflict, status.HTTP_409_CONFLICT),
    (IllegalTransition, status.HTTP_409_CONFLICT),
    (ResourceUnavailable, status.HTTP_409_CONFLICT),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(error: SchedulingError) -> int:
    for error_type, code in STATUS_CODES:
        if isinstance(error, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_http_error(error: SchedulingError) -> NoReturn:
    """
    Re-raise a scheduling error as an HTTPException.

    The response ``detail`` is the error's ``to_dict()``: message, code, and
    the field list or conflicting ranges where the error has them.

    Raises:
        HTTPException: Always.
    """
    raise HTTPException(status_code=status_code_for(error), detail=error.to_dict()) from error


def require_user_or_401(user_id: Optional[str]) -> str:
    """
    Validate that the caller is identified, raise 401 if not.

    Args:
        user_id: Value of the ``X-User-Id`` header

    Raises:
        HTTPException: 401 if the header is missing or empty
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    return user_id
