"""
Conflict detection between a candidate range and existing reservations.

``conflicting`` is the pure predicate the stores evaluate inside their atomic
insert; ``find_conflicts`` is the advisory read-only variant used by
availability checks and pre-validation. Both use ``TimeRange.overlaps``.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from coworking_scheduler.scheduling.entities import Reservation
from coworking_scheduler.scheduling.lifecycle import OCCUPYING_STATUSES
from coworking_scheduler.scheduling.time_range import TimeRange

if TYPE_CHECKING:
    from coworking_scheduler.db.store import ReservationStore

ConflictPredicate = Callable[[TimeRange, Iterable[Reservation]], list[Reservation]]


def conflicting(
    candidate: TimeRange,
    reservations: Iterable[Reservation],
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """
    Return the slot-occupying reservations that overlap ``candidate``.

    Cancelled reservations never conflict. ``exclude_reservation_id`` lets a
    reservation being rescheduled ignore its own current slot.
    """
    return sorted(
        (
            r
            for r in reservations
            if r.status in OCCUPYING_STATUSES
            and r.id != exclude_reservation_id
            and r.time_range.overlaps(candidate)
        ),
        key=lambda r: r.time_range,
    )


def conflict_predicate(exclude_reservation_id: Optional[int] = None) -> ConflictPredicate:
    """Bind ``exclude_reservation_id`` so a store can call ``predicate(range, rows)``."""

    def predicate(candidate: TimeRange, reservations: Iterable[Reservation]) -> list[Reservation]:
        return conflicting(candidate, reservations, exclude_reservation_id)

    return predicate


def find_conflicts(
    store: "ReservationStore",
    resource_id: int,
    day: date,
    candidate: TimeRange,
    exclude_reservation_id: Optional[int] = None,
) -> list[Reservation]:
    """
    Read-only conflict lookup for ``candidate`` on ``resource_id``/``day``.

    Advisory only: another writer may commit between this read and a later
    write. Creation relies on ``ReservationStore.try_insert`` instead.
    """
    existing = store.list_for_day(resource_id, day, OCCUPYING_STATUSES)
    return conflicting(candidate.with_day(day), existing, exclude_reservation_id)


def describe_conflicts(reservations: Iterable[Reservation]) -> list[dict[str, str]]:
    """Time ranges of colliding reservations, without owner or id."""
    return [r.time_range.to_dict() for r in reservations]
