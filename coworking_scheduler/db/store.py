"""
Persistence boundary of the scheduling core.

``ReservationStore`` is the only component allowed to mutate reservations.
Its write operations combine conflict re-validation and the write in one
atomic unit: ``SqlReservationStore`` runs both inside a single transaction
holding the per-resource write lock, so two overlapping requests can never
both commit.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Protocol

import structlog
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import InterfaceError, OperationalError

from coworking_scheduler.db.readers.reservations import (
    get_reservation,
    list_reservations_for_day,
    list_reservations_for_requester,
    list_stale_payment_pending,
)
from coworking_scheduler.db.readers.resources import get_resource, lock_resource
from coworking_scheduler.db.writers.reservations import (
    insert_reservation,
    update_reservation_slot,
    update_reservation_status,
)
from coworking_scheduler.errors import (
    IllegalTransition,
    ReservationNotFound,
    ResourceNotFound,
    SlotConflict,
    StoreUnavailable,
)
from coworking_scheduler.metrics import store_operation_duration
from coworking_scheduler.scheduling.conflicts import ConflictPredicate, describe_conflicts
from coworking_scheduler.scheduling.entities import Reservation, Resource
from coworking_scheduler.scheduling.lifecycle import (
    OCCUPYING_STATUSES,
    PaymentStatus,
    ReservationStatus,
)
from coworking_scheduler.scheduling.time_range import TimeRange
from coworking_scheduler.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


class ReservationStore(Protocol):
    def get_resource(self, resource_id: int) -> Optional[Resource]: ...

    def get(self, reservation_id: int) -> Optional[Reservation]: ...

    def list_for_day(
        self, resource_id: int, day: date, statuses: Iterable[ReservationStatus]
    ) -> list[Reservation]: ...

    def list_for_requester(self, requester_id: str) -> list[Reservation]: ...

    def list_expired_payment_pending(self, older_than: datetime) -> list[Reservation]: ...

    def try_insert(
        self, reservation: Reservation, conflict_predicate: ConflictPredicate
    ) -> Reservation:
        """Insert unless ``conflict_predicate`` finds a collision; raises ``SlotConflict``."""
        ...

    def try_reschedule(
        self,
        reservation_id: int,
        new_range: TimeRange,
        new_duration: int,
        new_price: Decimal,
        allowed_statuses: Iterable[ReservationStatus],
        conflict_predicate: ConflictPredicate,
    ) -> Reservation:
        """Move a reservation unless the new slot collides; raises ``SlotConflict``."""
        ...

    def transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        new_status: ReservationStatus,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Reservation:
        """Compare-and-set status change; raises ``IllegalTransition`` on a lost race."""
        ...


class SqlReservationStore:
    """
    ``ReservationStore`` over a SQLAlchemy engine (PostgreSQL or SQLite).

    Every method uses its own connection/transaction. Connectivity errors are
    re-raised as ``StoreUnavailable``; nothing is retried here.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @contextmanager
    def _connection(self, operation: str, write: bool = False) -> Iterator[Connection]:
        start_time = time.time()
        try:
            if write:
                with self._engine.begin() as conn:
                    yield conn
            else:
                with self._engine.connect() as conn:
                    yield conn
        except (OperationalError, InterfaceError) as e:
            logger.error("store_unavailable", operation=operation, error=str(e))
            raise StoreUnavailable(f"Reservation store unavailable during {operation}") from e
        finally:
            store_operation_duration.labels(operation=operation).observe(time.time() - start_time)

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        with self._connection("get_resource") as conn:
            return get_resource(conn, resource_id)

    def get(self, reservation_id: int) -> Optional[Reservation]:
        with self._connection("get") as conn:
            return get_reservation(conn, reservation_id)

    def list_for_day(
        self, resource_id: int, day: date, statuses: Iterable[ReservationStatus]
    ) -> list[Reservation]:
        with self._connection("list_for_day") as conn:
            return list_reservations_for_day(conn, resource_id, day, statuses)

    def list_for_requester(self, requester_id: str) -> list[Reservation]:
        with self._connection("list_for_requester") as conn:
            return list_reservations_for_requester(conn, requester_id)

    def list_expired_payment_pending(self, older_than: datetime) -> list[Reservation]:
        with self._connection("list_expired_payment_pending") as conn:
            return list_stale_payment_pending(conn, older_than)

    def try_insert(
        self, reservation: Reservation, conflict_predicate: ConflictPredicate
    ) -> Reservation:
        day = reservation.time_range.day
        with self._connection("try_insert", write=True) as conn:
            if not lock_resource(conn, reservation.resource_id):
                raise ResourceNotFound(reservation.resource_id)

            existing = list_reservations_for_day(
                conn, reservation.resource_id, day, OCCUPYING_STATUSES
            )
            conflicts = conflict_predicate(reservation.time_range, existing)
            if conflicts:
                raise SlotConflict(describe_conflicts(conflicts))

            now = utc_now()
            reservation_id = insert_reservation(conn, reservation, now)

        return reservation.evolve(id=reservation_id, created_at=now, updated_at=now)

    def try_reschedule(
        self,
        reservation_id: int,
        new_range: TimeRange,
        new_duration: int,
        new_price: Decimal,
        allowed_statuses: Iterable[ReservationStatus],
        conflict_predicate: ConflictPredicate,
    ) -> Reservation:
        allowed = frozenset(allowed_statuses)
        with self._connection("try_reschedule", write=True) as conn:
            current = get_reservation(conn, reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            lock_resource(conn, current.resource_id)

            # re-read under the lock: the status may have moved since the caller looked
            current = get_reservation(conn, reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            if current.status not in allowed:
                raise IllegalTransition(current.status.value, "rescheduled")

            existing = list_reservations_for_day(
                conn, current.resource_id, new_range.day, OCCUPYING_STATUSES
            )
            conflicts = conflict_predicate(new_range, existing)
            if conflicts:
                raise SlotConflict(describe_conflicts(conflicts))

            now = utc_now()
            if not update_reservation_slot(
                conn, reservation_id, new_range, new_duration, new_price, current.status, now
            ):
                raise IllegalTransition(current.status.value, "rescheduled")

        return current.evolve(
            time_range=new_range, duration=new_duration, total_price=new_price, updated_at=now
        )

    def transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        new_status: ReservationStatus,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Reservation:
        with self._connection("transition", write=True) as conn:
            now = utc_now()
            updated = update_reservation_status(
                conn, reservation_id, expected_status, new_status, now, payment_status
            )
            current = get_reservation(conn, reservation_id)

        if current is None:
            raise ReservationNotFound(reservation_id)
        if not updated:
            raise IllegalTransition(current.status.value, new_status.value)
        return current
