from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status

from coworking_scheduler.dependencies import get_reservation_service
from coworking_scheduler.errors import PermissionDenied, SchedulingError
from coworking_scheduler.routes._auth import require_staff_credentials
from coworking_scheduler.routes._errors import raise_http_error, require_user_or_401
from coworking_scheduler.schemas.reservations import (
    ReservationCreatePayload,
    ReservationUpdatePayload,
)
from coworking_scheduler.services.reservations import ReservationService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreatePayload,
    x_user_id: Optional[str] = Header(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """
    Book a resource for a time range.

    Args:
        payload: Resource, date/time range, duration, guests and payment method
        x_user_id: Requester identity from the session provider
        service: Reservation service

    Returns:
        dict: The persisted reservation (status ``pending`` for onsite payment,
        ``payment_pending`` otherwise)
    """
    try:
        requester_id = require_user_or_401(x_user_id)
        reservation = service.create_reservation(
            resource_id=payload.resource_id,
            day=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            duration_type=payload.duration_type,
            duration=payload.duration,
            guests=payload.guests,
            payment_method=payload.payment_method,
            requester_id=requester_id,
            notes=payload.notes,
        )
        return reservation.to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_creation_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations")
def list_reservations(
    requester_id: Optional[str] = Query(None, description="Defaults to the caller"),
    x_user_id: Optional[str] = Header(None),
    service: ReservationService = Depends(get_reservation_service),
) -> list[dict[str, Any]]:
    """
    List a requester's reservations, latest date first.

    Only the requester themself may list their bookings.
    """
    try:
        caller = require_user_or_401(x_user_id)
        if requester_id is not None and requester_id != caller:
            raise PermissionDenied("Only the requester may list their reservations")
        return [r.to_dict() for r in service.list_reservations(caller)]

    except SchedulingError as e:
        raise_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/reservations/{reservation_id}")
def get_reservation(
    reservation_id: int,
    x_user_id: Optional[str] = Header(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        caller = require_user_or_401(x_user_id)
        return service.get_reservation(reservation_id, actor_id=caller).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_fetch_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.patch("/reservations/{reservation_id}")
def modify_reservation(
    reservation_id: int,
    payload: ReservationUpdatePayload,
    x_user_id: Optional[str] = Header(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """
    Move a reservation to a new date and/or time.

    Args:
        reservation_id: Reservation to move
        payload: New date/start/end; omitted fields are kept
        x_user_id: Caller identity; must be the requester
        service: Reservation service

    Returns:
        dict: Updated reservation with its recomputed price
    """
    try:
        caller = require_user_or_401(x_user_id)
        update_data = payload.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )

        reservation = service.modify_reservation(
            reservation_id,
            new_date=payload.date,
            new_start=payload.start_time,
            new_end=payload.end_time,
            actor_id=caller,
        )
        return reservation.to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_update_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/reservations/{reservation_id}/cancel")
def cancel_reservation(
    reservation_id: int,
    x_user_id: Optional[str] = Header(None),
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        caller = require_user_or_401(x_user_id)
        return service.cancel_reservation(reservation_id, actor_id=caller).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception("reservation_cancel_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/reservations/{reservation_id}/confirm", dependencies=[Depends(require_staff_credentials)]
)
def confirm_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """Staff confirmation of an onsite-payment reservation (``pending`` only)."""
    try:
        return service.confirm_reservation(reservation_id).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception("reservation_confirm_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/reservations/{reservation_id}/complete", dependencies=[Depends(require_staff_credentials)]
)
def complete_reservation(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        return service.complete_reservation(reservation_id).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception(
            "reservation_complete_failed", reservation_id=reservation_id, error=str(e)
        )
        raise HTTPException(status_code=500, detail="Internal server error")
