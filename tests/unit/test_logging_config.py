"""
Unit tests for the structlog processors.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from coworking_scheduler.logging_config import (
    SERVICE_NAME,
    add_service_name,
    build_processors,
    stringify_domain_values,
)
from coworking_scheduler.scheduling.lifecycle import ReservationStatus


@pytest.mark.unit
def test_stringify_domain_values() -> None:
    event = {
        "event": "reservation_created",
        "total_price": Decimal("20.00"),
        "day": date(2024, 12, 25),
        "status": ReservationStatus.PAYMENT_PENDING,
        "reservation_id": 7,
    }

    result = stringify_domain_values(None, "info", event)

    assert result == {
        "event": "reservation_created",
        "total_price": "20.00",
        "day": "2024-12-25",
        "status": "payment_pending",
        "reservation_id": 7,
    }


@pytest.mark.unit
def test_add_service_name_keeps_explicit_value() -> None:
    assert add_service_name(None, "info", {})["service"] == SERVICE_NAME
    assert add_service_name(None, "info", {"service": "cron"})["service"] == "cron"


@pytest.mark.unit
def test_build_processors_renders_json_last() -> None:
    processors = build_processors(json_output=True)

    rendered = processors[-1](None, "info", {"event": "x", "total_price": "1.00"})

    assert rendered == '{"event": "x", "total_price": "1.00"}'
