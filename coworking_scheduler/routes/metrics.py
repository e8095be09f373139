"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP coworking_reservations_created_total Total number of reservations created
        # TYPE coworking_reservations_created_total counter
        coworking_reservations_created_total{payment_method="card",resource_id="3"} 12.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Current values of all registered metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
