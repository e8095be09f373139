"""
Shared fixtures for the whole suite.

``DATABASE_URL`` must exist before ``coworking_scheduler.config`` is imported;
an in-memory SQLite URL keeps the module-level engine harmless. Tests that
need a real database build their own file-backed engine.
"""

from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from coworking_scheduler.db.engine import build_engine  # noqa: E402
from coworking_scheduler.db.memory_store import InMemoryReservationStore  # noqa: E402
from coworking_scheduler.models.base import Base  # noqa: E402
from coworking_scheduler.scheduling.entities import OpeningHours, Resource  # noqa: E402
from coworking_scheduler.scheduling.pricing import RateTable  # noqa: E402
from coworking_scheduler.services.events import TransitionEvent  # noqa: E402
from coworking_scheduler.services.reservations import ReservationService  # noqa: E402


class FixedClock:
    """Stand-in for the local date; tests move ``day`` to exercise date rules."""

    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


class RecordingPublisher:
    """Event publisher that keeps every event in memory."""

    def __init__(self) -> None:
        self.events: list[TransitionEvent] = []

    def publish(self, event: TransitionEvent) -> None:
        self.events.append(event)


@pytest.fixture
def make_resource() -> Callable[..., Resource]:
    """Factory for resources; defaults to 10/hour, capacity 4, default hours."""

    def _make(
        resource_id: int = 1,
        capacity: int = 4,
        hour: str = "10",
        day: str = "60",
        week: str = "0",
        month: str = "0",
        available: bool = True,
        opening_hours: dict[str, OpeningHours] | None = None,
    ) -> Resource:
        return Resource(
            id=resource_id,
            name=f"Space {resource_id}",
            capacity=capacity,
            rate_table=RateTable(
                hour=Decimal(hour), day=Decimal(day), week=Decimal(week), month=Decimal(month)
            ),
            available=available,
            opening_hours=opening_hours or {},
        )

    return _make


@pytest.fixture
def resource(make_resource: Callable[..., Resource]) -> Resource:
    return make_resource()


@pytest.fixture
def memory_store(resource: Resource) -> InMemoryReservationStore:
    return InMemoryReservationStore([resource])


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def clock() -> FixedClock:
    """Local date pinned to 2024-12-01, before the dates the suite books."""
    return FixedClock(date(2024, 12, 1))


@pytest.fixture
def service(
    memory_store: InMemoryReservationStore, publisher: RecordingPublisher, clock: FixedClock
) -> ReservationService:
    return ReservationService(memory_store, publisher, today=clock)


@pytest.fixture
def sqlite_engine(tmp_path: os.PathLike[str]) -> Generator[Engine, None, None]:
    """File-backed SQLite engine with the schema created from the ORM models."""
    engine = build_engine(f"sqlite:///{tmp_path}/scheduler.db")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()
