"""
Shared fixtures for SQL store integration tests (file-backed SQLite).
"""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.engine import Engine

from coworking_scheduler.db.store import SqlReservationStore
from coworking_scheduler.db.writers.resources import insert_resources
from coworking_scheduler.services.reservations import ReservationService


@pytest.fixture
def resource_data() -> dict[str, Any]:
    return {
        "id": 1,
        "name": "Salle Atlas",
        "capacity": 4,
        "pricing": {"hour": "10", "day": "60", "week": "0", "month": "0"},
        "available": True,
        "opening_hours": {
            "sunday": {"closed": True},
            "saturday": {"open": "10:00", "close": "16:00"},
        },
    }


@pytest.fixture
def seeded_engine(sqlite_engine: Engine, resource_data: dict[str, Any]) -> Engine:
    """SQLite engine with one resource, ``Salle Atlas`` (id 1)."""
    insert_resources(sqlite_engine, [resource_data])
    return sqlite_engine


@pytest.fixture
def sql_store(seeded_engine: Engine) -> SqlReservationStore:
    return SqlReservationStore(seeded_engine)


@pytest.fixture
def sql_service(
    sql_store: SqlReservationStore, publisher: Any, clock: Any
) -> ReservationService:
    return ReservationService(sql_store, publisher, today=clock)
