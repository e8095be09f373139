from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from coworking_scheduler.models.reservations import Reservation as ReservationRow
from coworking_scheduler.scheduling.entities import Reservation
from coworking_scheduler.scheduling.lifecycle import (
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
)
from coworking_scheduler.scheduling.pricing import DurationUnit
from coworking_scheduler.scheduling.time_range import TimeRange


def row_to_reservation(row: Any) -> Reservation:
    """
    Convert a ``reservations`` row into a domain ``Reservation``.

    Args:
        row: Result row exposing the ``reservations`` columns as attributes.

    Returns:
        Reservation: Domain reservation.
    """
    return Reservation(
        id=row.id,
        resource_id=row.resource_id,
        requester_id=row.requester_id,
        time_range=TimeRange.parse(row.date, row.start_time, row.end_time),
        guests=row.guests,
        duration_type=DurationUnit(row.duration_type),
        duration=row.duration,
        total_price=Decimal(row.total_price).quantize(Decimal("0.01")),
        status=ReservationStatus(row.status),
        payment_status=PaymentStatus(row.payment_status),
        payment_method=PaymentMethod(row.payment_method),
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def get_reservation(conn: Connection, reservation_id: int) -> Optional[Reservation]:
    """
    Fetch a reservation by ID.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        reservation_id (int): Reservation ID.

    Returns:
        Optional[Reservation]: The reservation or None.
    """
    row = conn.execute(
        select(ReservationRow).where(ReservationRow.id == reservation_id)
    ).fetchone()
    return row_to_reservation(row) if row else None


def list_reservations_for_day(
    conn: Connection,
    resource_id: int,
    day: date,
    statuses: Iterable[ReservationStatus],
) -> list[Reservation]:
    """
    Reservations of ``resource_id`` on ``day`` whose status is in ``statuses``.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        resource_id (int): Resource ID.
        day (date): Calendar day.
        statuses: Statuses to include.

    Returns:
        list[Reservation]: Ordered by start time.
    """
    result = conn.execute(
        select(ReservationRow)
        .where(ReservationRow.resource_id == resource_id)
        .where(ReservationRow.date == day)
        .where(ReservationRow.status.in_([s.value for s in statuses]))
        .order_by(ReservationRow.start_time)
    )
    return [row_to_reservation(row) for row in result]


def list_reservations_for_requester(conn: Connection, requester_id: str) -> list[Reservation]:
    """All reservations of one requester, newest date first."""
    result = conn.execute(
        select(ReservationRow)
        .where(ReservationRow.requester_id == requester_id)
        .order_by(ReservationRow.date.desc(), ReservationRow.start_time.desc())
    )
    return [row_to_reservation(row) for row in result]


def list_stale_payment_pending(conn: Connection, created_before: datetime) -> list[Reservation]:
    """``payment_pending`` reservations created before ``created_before``."""
    result = conn.execute(
        select(ReservationRow)
        .where(ReservationRow.status == ReservationStatus.PAYMENT_PENDING.value)
        .where(ReservationRow.created_at < created_before)
        .order_by(ReservationRow.created_at)
    )
    return [row_to_reservation(row) for row in result]
