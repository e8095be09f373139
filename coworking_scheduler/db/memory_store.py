"""
In-process ``ReservationStore`` for tests and local development.

Writers for the same resource serialize on a per-resource lock, so the
conflict check and the insert form one critical section, the same guarantee
the SQL store gets from its transaction lock.
"""

from __future__ import annotations

import itertools
import threading
from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from coworking_scheduler.errors import (
    IllegalTransition,
    ReservationNotFound,
    ResourceNotFound,
    SlotConflict,
)
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


class InMemoryReservationStore:
    def __init__(self, resources: Iterable[Resource] = ()) -> None:
        self._resources: dict[int, Resource] = {r.id: r for r in resources}
        self._reservations: dict[int, Reservation] = {}
        self._ids = itertools.count(1)
        # guards the dicts themselves; held only for short reads/writes
        self._state_lock = threading.Lock()
        self._resource_locks: defaultdict[int, threading.Lock] = defaultdict(threading.Lock)

    def add_resource(self, resource: Resource) -> None:
        with self._state_lock:
            self._resources[resource.id] = resource

    def _resource_lock(self, resource_id: int) -> threading.Lock:
        with self._state_lock:
            return self._resource_locks[resource_id]

    def get_resource(self, resource_id: int) -> Optional[Resource]:
        with self._state_lock:
            return self._resources.get(resource_id)

    def get(self, reservation_id: int) -> Optional[Reservation]:
        with self._state_lock:
            return self._reservations.get(reservation_id)

    def list_for_day(
        self, resource_id: int, day: date, statuses: Iterable[ReservationStatus]
    ) -> list[Reservation]:
        wanted = frozenset(statuses)
        with self._state_lock:
            found = [
                r
                for r in self._reservations.values()
                if r.resource_id == resource_id
                and r.time_range.day == day
                and r.status in wanted
            ]
        return sorted(found, key=lambda r: r.time_range)

    def list_for_requester(self, requester_id: str) -> list[Reservation]:
        with self._state_lock:
            found = [r for r in self._reservations.values() if r.requester_id == requester_id]
        return sorted(found, key=lambda r: r.time_range, reverse=True)

    def list_expired_payment_pending(self, older_than: datetime) -> list[Reservation]:
        with self._state_lock:
            found = [
                r
                for r in self._reservations.values()
                if r.status is ReservationStatus.PAYMENT_PENDING
                and r.created_at is not None
                and r.created_at < older_than
            ]
        return sorted(found, key=lambda r: r.created_at)  # type: ignore[arg-type, return-value]

    def try_insert(
        self, reservation: Reservation, conflict_predicate: ConflictPredicate
    ) -> Reservation:
        if self.get_resource(reservation.resource_id) is None:
            raise ResourceNotFound(reservation.resource_id)

        with self._resource_lock(reservation.resource_id):
            existing = self.list_for_day(
                reservation.resource_id, reservation.time_range.day, OCCUPYING_STATUSES
            )
            conflicts = conflict_predicate(reservation.time_range, existing)
            if conflicts:
                raise SlotConflict(describe_conflicts(conflicts))

            now = utc_now()
            with self._state_lock:
                stored = reservation.evolve(id=next(self._ids), created_at=now, updated_at=now)
                self._reservations[stored.id] = stored  # type: ignore[index]
        return stored

    def try_reschedule(
        self,
        reservation_id: int,
        new_range: TimeRange,
        new_duration: int,
        new_price: Decimal,
        allowed_statuses: Iterable[ReservationStatus],
        conflict_predicate: ConflictPredicate,
    ) -> Reservation:
        current = self.get(reservation_id)
        if current is None:
            raise ReservationNotFound(reservation_id)

        with self._resource_lock(current.resource_id):
            current = self.get(reservation_id)
            if current is None:
                raise ReservationNotFound(reservation_id)
            if current.status not in frozenset(allowed_statuses):
                raise IllegalTransition(current.status.value, "rescheduled")

            existing = self.list_for_day(current.resource_id, new_range.day, OCCUPYING_STATUSES)
            conflicts = conflict_predicate(new_range, existing)
            if conflicts:
                raise SlotConflict(describe_conflicts(conflicts))

            with self._state_lock:
                updated = current.evolve(
                    time_range=new_range,
                    duration=new_duration,
                    total_price=new_price,
                    updated_at=utc_now(),
                )
                self._reservations[reservation_id] = updated
        return updated

    def transition(
        self,
        reservation_id: int,
        expected_status: ReservationStatus,
        new_status: ReservationStatus,
        payment_status: Optional[PaymentStatus] = None,
    ) -> Reservation:
        current = self.get(reservation_id)
        if current is None:
            raise ReservationNotFound(reservation_id)

        # same lock as try_reschedule so a move cannot resurrect a cancelled row
        with self._resource_lock(current.resource_id), self._state_lock:
            current = self._reservations[reservation_id]
            if current.status is not expected_status:
                raise IllegalTransition(current.status.value, new_status.value)

            changes = {"status": new_status, "updated_at": utc_now()}
            if payment_status is not None:
                changes["payment_status"] = payment_status
            updated = current.evolve(**changes)
            self._reservations[reservation_id] = updated
        return updated
