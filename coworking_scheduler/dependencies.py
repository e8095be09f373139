"""
FastAPI dependency injection providers.

Routes receive the reservation service through these providers, so tests can
swap in an in-memory store or a recording publisher with
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.engine import Engine

from coworking_scheduler.config import NOTIFY_WEBHOOK_URL
from coworking_scheduler.db.engine import engine
from coworking_scheduler.db.store import ReservationStore, SqlReservationStore
from coworking_scheduler.services.events import (
    EventPublisher,
    LoggingEventPublisher,
    WebhookEventPublisher,
)
from coworking_scheduler.services.reservations import ReservationService


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: test_engine
    """
    yield engine


def get_reservation_store(db: Engine = Depends(get_db_engine)) -> ReservationStore:
    return SqlReservationStore(db)


def get_event_publisher() -> EventPublisher:
    """Webhook publisher when ``NOTIFY_WEBHOOK_URL`` is set, structured log otherwise."""
    if NOTIFY_WEBHOOK_URL:
        return WebhookEventPublisher(NOTIFY_WEBHOOK_URL)
    return LoggingEventPublisher()


def get_reservation_service(
    store: ReservationStore = Depends(get_reservation_store),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> ReservationService:
    """
    Provide the reservation service wired to the configured store and publisher.

    Testing Example:
        >>> store = InMemoryReservationStore([resource])
        >>> app.dependency_overrides[get_reservation_service] = (
        ...     lambda: ReservationService(store)
        ... )
    """
    return ReservationService(store, publisher)
