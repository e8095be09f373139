"""Availability query route for the booking calendar."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from coworking_scheduler.config import SLOT_MINUTES
from coworking_scheduler.dependencies import get_reservation_service
from coworking_scheduler.errors import SchedulingError
from coworking_scheduler.routes._errors import raise_http_error
from coworking_scheduler.services.reservations import ReservationService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/resources/{resource_id}/availability")
def get_availability(
    resource_id: int,
    date: str = Query(..., description="Calendar date, YYYY-MM-DD"),
    start: Optional[str] = Query(None, description="Check this start time (HH:MM)"),
    end: Optional[str] = Query(None, description="Check this end time (HH:MM)"),
    slot_minutes: int = Query(SLOT_MINUTES, description="Slot size: 15, 30, 60 or 120"),
    minimum_minutes: Optional[int] = Query(
        None, description="Also list free blocks at least this long"
    ),
    service: ReservationService = Depends(get_reservation_service),
) -> dict[str, Any]:
    """
    Availability of a resource for one day.

    Returns busy and free blocks, the slot grid with occupancy statistics, the
    longest free block, and optionally a check of ``start``-``end``.

    Example:
        >>> GET /resources/3/availability?date=2024-12-25&start=14:00&end=16:00
        {"resource_id": 3, "date": "2024-12-25", "free_blocks": [...], ...}
    """
    try:
        report = service.query_availability(
            resource_id,
            date,
            start=start,
            end=end,
            slot_minutes=slot_minutes,
            minimum_minutes=minimum_minutes,
        )
        return report.to_dict()

    except SchedulingError as e:
        raise_http_error(e)
    except Exception as e:
        logger.exception("availability_query_failed", resource_id=resource_id, error=str(e))
        raise HTTPException(status_code=500, detail="Internal server error")
