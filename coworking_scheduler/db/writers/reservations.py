from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from coworking_scheduler.models.reservations import Reservation as ReservationRow
from coworking_scheduler.scheduling.entities import Reservation
from coworking_scheduler.scheduling.lifecycle import PaymentStatus, ReservationStatus
from coworking_scheduler.scheduling.time_range import TimeRange

logger = structlog.get_logger(__name__)


def insert_reservation(conn: Connection, reservation: Reservation, now: datetime) -> int:
    """
    Insert one reservation row inside the caller's transaction.

    The caller is responsible for having re-validated the slot under lock in
    the same transaction.

    Args:
        conn (Connection): Connection with an open transaction.
        reservation (Reservation): Reservation to persist (``id`` is ignored).
        now (datetime): Timestamp for ``created_at``/``updated_at``.

    Returns:
        int: The new reservation ID.
    """
    result = conn.execute(
        insert(ReservationRow).values(
            resource_id=reservation.resource_id,
            requester_id=reservation.requester_id,
            date=reservation.time_range.day,
            start_time=reservation.time_range.start_time,
            end_time=reservation.time_range.end_time,
            guests=reservation.guests,
            duration_type=reservation.duration_type.value,
            duration=reservation.duration,
            total_price=reservation.total_price,
            status=reservation.status.value,
            payment_status=reservation.payment_status.value,
            payment_method=reservation.payment_method.value,
            notes=reservation.notes,
            created_at=now,
            updated_at=now,
        )
    )
    reservation_id = result.inserted_primary_key[0]
    logger.debug("reservation_row_inserted", reservation_id=reservation_id)
    return int(reservation_id)


def update_reservation_status(
    conn: Connection,
    reservation_id: int,
    expected_status: ReservationStatus,
    new_status: ReservationStatus,
    now: datetime,
    payment_status: Optional[PaymentStatus] = None,
) -> bool:
    """
    Compare-and-set the status of a reservation.

    The row is only updated while it still has ``expected_status``, so two
    actors racing on the same reservation cannot both win.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        reservation_id (int): Reservation ID.
        expected_status (ReservationStatus): Status the caller read.
        new_status (ReservationStatus): Target status.
        now (datetime): New ``updated_at``.
        payment_status (Optional[PaymentStatus]): Payment status to set alongside.

    Returns:
        bool: True if the row was updated.
    """
    values = {"status": new_status.value, "updated_at": now}
    if payment_status is not None:
        values["payment_status"] = payment_status.value

    result = conn.execute(
        update(ReservationRow)
        .where(ReservationRow.id == reservation_id)
        .where(ReservationRow.status == expected_status.value)
        .values(**values)
    )
    return result.rowcount == 1


def update_reservation_slot(
    conn: Connection,
    reservation_id: int,
    new_range: TimeRange,
    new_duration: int,
    new_price: Decimal,
    expected_status: ReservationStatus,
    now: datetime,
) -> bool:
    """
    Move a reservation to a new date/time and store its recomputed duration and price.

    Args:
        conn (Connection): Connection with an open transaction.
        reservation_id (int): Reservation ID.
        new_range (TimeRange): New slot (already checked for conflicts under lock).
        new_duration (int): Duration in the reservation's unit.
        new_price (Decimal): Recomputed total price.
        expected_status (ReservationStatus): Status read under the lock.
        now (datetime): New ``updated_at``.

    Returns:
        bool: False if the status changed concurrently and nothing was written.
    """
    result = conn.execute(
        update(ReservationRow)
        .where(ReservationRow.id == reservation_id)
        .where(ReservationRow.status == expected_status.value)
        .values(
            date=new_range.day,
            start_time=new_range.start_time,
            end_time=new_range.end_time,
            duration=new_duration,
            total_price=new_price,
            updated_at=now,
        )
    )
    return result.rowcount == 1
