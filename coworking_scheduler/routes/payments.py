"""
Payment collaborator routes.

The payment provider (or an operator) reports the outcome of a card/PayPal
payment here. The core never talks to the provider itself.
"""

from typing import Any, Callable

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from coworking_scheduler.dependencies import get_reservation_service
from coworking_scheduler.errors import IllegalTransition, ReservationNotFound, SchedulingError
from coworking_scheduler.routes._auth import payment_credentials_valid, require_payment_credentials
from coworking_scheduler.routes._errors import raise_http_error
from coworking_scheduler.scheduling.entities import Reservation
from coworking_scheduler.services.reservations import ReservationService

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post(
    "/payments/{reservation_id}/settled", dependencies=[Depends(require_payment_credentials)]
)
def payment_settled(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """Payment succeeded: ``payment_pending`` becomes ``confirmed``."""
    try:
        return service.mark_payment_settled(reservation_id).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception("payment_settle_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/payments/{reservation_id}/failed", dependencies=[Depends(require_payment_credentials)]
)
def payment_failed(
    reservation_id: int,
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """Payment failed or expired: ``payment_pending`` becomes ``cancelled``."""
    try:
        return service.mark_payment_failed(reservation_id).to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception("payment_fail_failed", reservation_id=reservation_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/payments/webhook")
async def receive_payment_webhook(
    request: Request,
    service: ReservationService = Depends(get_reservation_service),
) -> JSONResponse:
    """
    Handle payment provider notifications.

    Supported events:
    - payment.succeeded
    - payment.failed

    Authentication: HTTP Basic Auth with WEBHOOK_USERNAME/WEBHOOK_PASSWORD

    Expected payload:
        {"event": "payment.succeeded", "data": {"reservation_id": 42}}

    Redelivered events for reservations that already left ``payment_pending``
    are acknowledged and ignored.
    """
    if not payment_credentials_valid(request.headers.get("Authorization")):
        logger.warning("payment_webhook_auth_failed")
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": "Unauthorized"},
        )

    try:
        payload = await request.json()
    except ValueError:
        logger.warning("payment_webhook_invalid_json")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid JSON"},
        )

    if not isinstance(payload, dict):
        logger.warning("payment_webhook_invalid_payload")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload"},
        )

    data = payload.get("data") or {}
    if not isinstance(data, dict):
        logger.warning("payment_webhook_invalid_payload")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid payload"},
        )

    event_type = payload.get("event")
    reservation_id = data.get("reservation_id", payload.get("reservation_id"))

    logger.info("payment_webhook_received", event_type=event_type, reservation_id=reservation_id)

    if not event_type or not isinstance(event_type, str):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing event field"},
        )
    if isinstance(reservation_id, bool) or not isinstance(reservation_id, int):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing reservation_id"},
        )

    event_handlers: dict[str, Callable[[int], Reservation]] = {
        "payment.succeeded": service.mark_payment_settled,
        "payment.failed": service.mark_payment_failed,
    }

    handler = event_handlers.get(event_type)
    if handler is None:
        logger.warning("payment_webhook_unsupported_event", event_type=event_type)
        # Acknowledge anyway so the provider does not keep retrying
        return JSONResponse(content={"status": "ignored"})

    try:
        reservation = handler(reservation_id)
    except ReservationNotFound as e:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=e.to_dict())
    except IllegalTransition as e:
        logger.info(
            "payment_webhook_already_processed",
            reservation_id=reservation_id,
            current_status=e.current,
        )
        return JSONResponse(content={"status": "ignored", "current_status": e.current})
    except SchedulingError as e:
        raise_http_error(e)

    return JSONResponse(
        content={"status": "accepted", "reservation_status": reservation.status.value}
    )
