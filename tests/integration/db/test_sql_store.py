"""
Integration tests for the SQL reservation store on a file-backed SQLite database.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine

from coworking_scheduler.db.engine import build_engine
from coworking_scheduler.db.store import SqlReservationStore
from coworking_scheduler.db.writers.resources import insert_resources
from coworking_scheduler.errors import (
    IllegalTransition,
    ReservationNotFound,
    ResourceNotFound,
    SlotConflict,
    StoreUnavailable,
)
from coworking_scheduler.scheduling.entities import Reservation
from coworking_scheduler.scheduling.lifecycle import PaymentStatus, ReservationStatus
from coworking_scheduler.services.reservations import ReservationService
from coworking_scheduler.utils.datetime import utc_now

DAY = date(2024, 12, 25)


def book(
    service: ReservationService,
    start: str,
    end: str,
    requester: str = "alice",
    payment_method: str = "onsite",
    day: date = DAY,
) -> Reservation:
    return service.create_reservation(
        resource_id=1,
        day=day,
        start_time=start,
        end_time=end,
        duration_type="hour",
        duration=1,
        guests=2,
        payment_method=payment_method,
        requester_id=requester,
    )


@pytest.mark.integration
def test_create_persists_reservation(
    sql_service: ReservationService, sql_store: SqlReservationStore
) -> None:
    created = book(sql_service, "10:00", "11:00")

    stored = sql_store.get(created.id)

    assert stored is not None
    assert stored.status is ReservationStatus.PENDING
    assert stored.total_price == Decimal("10.00")
    assert stored.time_range.start_time == "10:00"
    assert stored.created_at is not None


@pytest.mark.integration
def test_overlapping_create_is_rejected(sql_service: ReservationService) -> None:
    book(sql_service, "10:00", "12:00")

    with pytest.raises(SlotConflict) as exc_info:
        book(sql_service, "11:00", "13:00", requester="bob")

    assert exc_info.value.conflicts == [{"start_time": "10:00", "end_time": "12:00"}]


@pytest.mark.integration
def test_adjacent_and_cancelled_slots_do_not_conflict(sql_service: ReservationService) -> None:
    first = book(sql_service, "10:00", "11:00")
    book(sql_service, "11:00", "12:00", requester="bob")

    sql_service.cancel_reservation(first.id, "alice")

    rebooked = book(sql_service, "10:00", "11:00", requester="carol")
    assert rebooked.status is ReservationStatus.PENDING


@pytest.mark.integration
def test_unknown_resource(sql_store: SqlReservationStore) -> None:
    assert sql_store.get_resource(42) is None


@pytest.mark.integration
def test_insert_for_missing_resource_raises(
    sql_store: SqlReservationStore, sql_service: ReservationService
) -> None:
    candidate = book(sql_service, "10:00", "11:00")

    with pytest.raises(ResourceNotFound):
        sql_store.try_insert(
            candidate.evolve(id=None, resource_id=42),
            lambda candidate_range, existing: [],
        )


@pytest.mark.integration
def test_transition_compare_and_set(
    sql_store: SqlReservationStore, sql_service: ReservationService
) -> None:
    created = book(sql_service, "10:00", "11:00", payment_method="card")

    settled = sql_store.transition(
        created.id,
        ReservationStatus.PAYMENT_PENDING,
        ReservationStatus.CONFIRMED,
        PaymentStatus.PAID,
    )
    assert settled.status is ReservationStatus.CONFIRMED
    assert settled.payment_status is PaymentStatus.PAID

    with pytest.raises(IllegalTransition) as exc_info:
        sql_store.transition(
            created.id,
            ReservationStatus.PAYMENT_PENDING,
            ReservationStatus.CANCELLED,
        )
    assert exc_info.value.current == "confirmed"

    with pytest.raises(ReservationNotFound):
        sql_store.transition(999, ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


@pytest.mark.integration
def test_cancel_paid_reservation_marks_refunded(sql_service: ReservationService) -> None:
    created = book(sql_service, "10:00", "11:00", payment_method="card")
    sql_service.mark_payment_settled(created.id)

    cancelled = sql_service.cancel_reservation(created.id, "alice")

    assert cancelled.status is ReservationStatus.CANCELLED
    assert cancelled.payment_status is PaymentStatus.REFUNDED


@pytest.mark.integration
def test_reschedule_moves_slot_and_reprices(
    sql_service: ReservationService,
    sql_store: SqlReservationStore,
    seeded_engine: Engine,
    resource_data: dict[str, Any],
) -> None:
    created = book(sql_service, "10:00", "11:00")
    book(sql_service, "14:00", "15:00", requester="bob")
    insert_resources(seeded_engine, [{**resource_data, "pricing": {"hour": "12.50"}}])

    moved = sql_service.modify_reservation(
        created.id, new_start="11:00", new_end="13:00", actor_id="alice"
    )

    assert moved.time_range.start_time == "11:00"
    assert moved.time_range.end_time == "13:00"
    assert moved.duration == 2
    assert moved.total_price == Decimal("25.00")
    stored = sql_store.get(moved.id)
    assert stored is not None
    assert stored.time_range == moved.time_range
    assert stored.duration == 2
    assert stored.total_price == Decimal("25.00")

    with pytest.raises(SlotConflict):
        sql_service.modify_reservation(
            created.id, new_start="13:00", new_end="15:00", actor_id="alice"
        )


@pytest.mark.integration
def test_reschedule_of_cancelled_reservation_is_illegal(sql_service: ReservationService) -> None:
    created = book(sql_service, "10:00", "11:00")
    sql_service.cancel_reservation(created.id, "alice")

    with pytest.raises(IllegalTransition):
        sql_service.modify_reservation(
            created.id, new_start="12:00", new_end="13:00", actor_id="alice"
        )


@pytest.mark.integration
def test_list_for_requester_newest_first(sql_service: ReservationService) -> None:
    book(sql_service, "10:00", "11:00")
    book(sql_service, "09:00", "10:00", day=DAY + timedelta(days=1))
    book(sql_service, "12:00", "13:00", requester="bob")

    listed = sql_service.list_reservations("alice")

    assert [(r.time_range.day, r.time_range.start_time) for r in listed] == [
        (DAY + timedelta(days=1), "09:00"),
        (DAY, "10:00"),
    ]


@pytest.mark.integration
def test_availability_reads_persisted_reservations(sql_service: ReservationService) -> None:
    book(sql_service, "10:00", "12:00")
    cancelled = book(sql_service, "14:00", "15:00", requester="bob")
    sql_service.cancel_reservation(cancelled.id, "bob")

    report = sql_service.query_availability(1, DAY)

    assert [str(block) for block in report.busy_blocks] == ["10:00-12:00"]
    assert [str(block) for block in report.free_blocks] == ["08:00-10:00", "12:00-20:00"]


@pytest.mark.integration
def test_availability_uses_stored_opening_hours(sql_service: ReservationService) -> None:
    sunday = date(2024, 12, 29)
    saturday = date(2024, 12, 28)

    assert sql_service.query_availability(1, sunday).window is None
    assert str(sql_service.query_availability(1, saturday).window) == "10:00-16:00"


@pytest.mark.integration
def test_expire_payment_pending(sql_service: ReservationService) -> None:
    stale = book(sql_service, "10:00", "11:00", payment_method="card")
    onsite = book(sql_service, "12:00", "13:00", requester="bob")

    expired = sql_service.expire_payment_pending(utc_now() + timedelta(minutes=1))

    assert [r.id for r in expired] == [stale.id]
    assert expired[0].status is ReservationStatus.CANCELLED
    assert expired[0].payment_status is PaymentStatus.FAILED
    assert sql_service.get_reservation(onsite.id).status is ReservationStatus.PENDING


@pytest.mark.integration
def test_unreachable_database_raises_store_unavailable(tmp_path: Path) -> None:
    broken = build_engine(f"sqlite:///{tmp_path}/missing-dir/scheduler.db")
    store = SqlReservationStore(broken)

    with pytest.raises(StoreUnavailable) as exc_info:
        store.get_resource(1)

    assert exc_info.value.code == "STORE_UNAVAILABLE"
    broken.dispose()
