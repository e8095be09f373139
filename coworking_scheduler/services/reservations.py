"""
Reservation lifecycle entry points.

``ReservationService`` is what the request layer and the payment/timeout
collaborators call. It validates input, prices the booking, and delegates
every write to the injected ``ReservationStore`` so that the conflict check
and the write are one atomic step. Each successful status change is published
as a ``TransitionEvent``; a publishing failure is logged and never undoes the
change.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

import structlog

from coworking_scheduler.config import SLOT_MINUTES
from coworking_scheduler.db.store import ReservationStore
from coworking_scheduler.errors import (
    IllegalTransition,
    PermissionDenied,
    ReservationNotFound,
    ResourceNotFound,
    ResourceUnavailable,
    SlotConflict,
    ValidationError,
)
from coworking_scheduler.metrics import (
    availability_query_duration,
    lifecycle_transitions,
    reservations_created,
    slot_conflicts,
)
from coworking_scheduler.scheduling.availability import (
    AvailabilityReport,
    SlotCheck,
    check_slot,
    compute_availability,
    consecutive_free_blocks,
)
from coworking_scheduler.scheduling.conflicts import conflict_predicate
from coworking_scheduler.scheduling.entities import Reservation, Resource
from coworking_scheduler.scheduling.lifecycle import (
    OCCUPYING_STATUSES,
    RESCHEDULABLE_STATUSES,
    PaymentMethod,
    PaymentStatus,
    ReservationStatus,
    can_transition,
    ensure_transition,
    initial_status,
)
from coworking_scheduler.scheduling.pricing import DurationUnit, calculate_price, validate_duration
from coworking_scheduler.scheduling.time_range import TimeRange
from coworking_scheduler.services.events import (
    EventPublisher,
    LoggingEventPublisher,
    TransitionEvent,
    publish_safely,
)
from coworking_scheduler.utils.datetime import local_today, parse_date, utc_now

logger = structlog.get_logger(__name__)

MAX_NOTES_LENGTH = 500


def _details(error: ValidationError) -> list[dict[str, str]]:
    return error.details or [{"field": "request", "message": error.message}]


def _window_details(resource: Resource, time_range: TimeRange) -> list[dict[str, str]]:
    """Field errors for a range that falls on a closed day or outside opening hours."""
    window = resource.opening_window(time_range.day)
    if window is None:
        return [{"field": "date", "message": "The space is closed on this day"}]
    if not window.contains(time_range):
        return [
            {
                "field": "start_time",
                "message": f"Requested time must be within opening hours ({window})",
            }
        ]
    return []


class ReservationService:
    """
    Args:
        store (ReservationStore): Persistence boundary; the only writer of reservations.
        publisher (EventPublisher): Receives one event per successful transition.
        today (Callable[[], date]): Current local date for the date policy;
            defaults to the server wall clock.
    """

    def __init__(
        self,
        store: ReservationStore,
        publisher: Optional[EventPublisher] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self.store = store
        self.publisher = publisher or LoggingEventPublisher()
        self.today = today or local_today

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _resource_or_404(self, resource_id: int) -> Resource:
        resource = self.store.get_resource(resource_id)
        if resource is None:
            raise ResourceNotFound(resource_id)
        return resource

    def _reservation_or_404(self, reservation_id: int) -> Reservation:
        reservation = self.store.get(reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        return reservation

    @staticmethod
    def _ensure_owner(reservation: Reservation, actor_id: Optional[str]) -> None:
        if actor_id is not None and reservation.requester_id != actor_id:
            raise PermissionDenied("Only the requester may access this reservation")

    def get_reservation(self, reservation_id: int, actor_id: Optional[str] = None) -> Reservation:
        reservation = self._reservation_or_404(reservation_id)
        self._ensure_owner(reservation, actor_id)
        return reservation

    def list_reservations(self, requester_id: str) -> list[Reservation]:
        """Requester's reservations, most recent date first."""
        if not requester_id:
            raise ValidationError.for_field("requester_id", "Requester is required")
        return self.store.list_for_requester(requester_id)

    def query_availability(
        self,
        resource_id: int,
        day: str | date,
        start: Optional[str] = None,
        end: Optional[str] = None,
        slot_minutes: int = SLOT_MINUTES,
        minimum_minutes: Optional[int] = None,
    ) -> AvailabilityReport:
        """
        Compute the day's availability for a resource.

        When both ``start`` and ``end`` are given, the report also carries an
        advisory check of that range. Passing only one of them is an error.

        Raises:
            ResourceNotFound: Unknown resource.
            ValidationError: Malformed date/time, slot size or minimum duration.
        """
        resource = self._resource_or_404(resource_id)
        try:
            parsed_day = parse_date(day)
        except ValueError as e:
            raise ValidationError.for_field("date", str(e)) from None

        if (start is None) != (end is None):
            raise ValidationError.for_field(
                "start_time" if start is None else "end_time",
                "Both start and end are required to check a slot",
            )

        with availability_query_duration.time():
            reservations = self.store.list_for_day(resource_id, parsed_day, OCCUPYING_STATUSES)
            report = compute_availability(resource, parsed_day, reservations, slot_minutes)

            if start is not None and end is not None:
                candidate = TimeRange.parse(parsed_day, start, end)
                check = check_slot(self.store, resource, parsed_day, candidate)
                if _window_details(resource, candidate) or not resource.available:
                    check = SlotCheck(candidate, False, check.conflicts)
                report.requested_slot = check

            if minimum_minutes is not None:
                report.consecutive_blocks = consecutive_free_blocks(report, minimum_minutes)

        logger.debug(
            "availability_computed",
            resource_id=resource_id,
            date=parsed_day.isoformat(),
            free_blocks=len(report.free_blocks),
        )
        return report

    # ------------------------------------------------------------------
    # Creation and modification
    # ------------------------------------------------------------------

    def create_reservation(
        self,
        resource_id: int,
        day: str | date,
        start_time: str,
        end_time: str,
        duration_type: Any,
        duration: Any,
        guests: int,
        payment_method: Any,
        requester_id: str,
        notes: Optional[str] = None,
    ) -> Reservation:
        """
        Create a reservation, or fail without side effects.

        Order: resource checks, field validation (all field errors reported
        together), pricing, then the store's atomic conflict-checked insert.

        Raises:
            ResourceNotFound: Unknown resource.
            ResourceUnavailable: Resource disabled for new bookings.
            ValidationError: One or more invalid fields (``details`` lists them).
            SlotConflict: The range overlaps an occupying reservation.
            StoreUnavailable: Persistence unreachable.
        """
        resource = self._resource_or_404(resource_id)
        if not resource.available:
            raise ResourceUnavailable(resource_id)

        details: list[dict[str, str]] = []

        time_range = None
        try:
            time_range = TimeRange.parse(day, start_time, end_time)
        except ValidationError as e:
            details.extend(_details(e))
        if time_range is not None:
            if time_range.day < self.today():
                details.append({"field": "date", "message": "The date cannot be in the past"})
            details.extend(_window_details(resource, time_range))

        valid_guests = isinstance(guests, int) and not isinstance(guests, bool)
        if not valid_guests or not 1 <= guests <= resource.capacity:
            details.append(
                {
                    "field": "guests",
                    "message": f"Guests must be between 1 and {resource.capacity}",
                }
            )

        unit = units = None
        try:
            unit = DurationUnit.parse(duration_type)
            units = validate_duration(duration, unit)
        except ValidationError as e:
            details.extend(_details(e))

        method = None
        try:
            method = PaymentMethod.parse(payment_method)
        except ValidationError as e:
            details.extend(_details(e))

        if not requester_id:
            details.append({"field": "requester_id", "message": "Requester is required"})
        if notes is not None and len(notes) > MAX_NOTES_LENGTH:
            details.append(
                {"field": "notes", "message": f"Notes cannot exceed {MAX_NOTES_LENGTH} characters"}
            )

        if details:
            raise ValidationError("Invalid reservation request", details)

        total_price = calculate_price(resource.rate_table, units, unit)
        status = initial_status(method)  # type: ignore[arg-type]

        candidate = Reservation(
            resource_id=resource_id,
            requester_id=requester_id,
            time_range=time_range,  # type: ignore[arg-type]
            guests=guests,
            duration_type=unit,  # type: ignore[arg-type]
            duration=units,  # type: ignore[arg-type]
            total_price=total_price,
            status=status,
            payment_method=method,  # type: ignore[arg-type]
            payment_status=PaymentStatus.PENDING,
            notes=notes,
        )

        try:
            reservation = self.store.try_insert(candidate, conflict_predicate())
        except SlotConflict as e:
            slot_conflicts.labels(resource_id=resource_id).inc()
            logger.info(
                "reservation_slot_conflict",
                resource_id=resource_id,
                date=candidate.time_range.day.isoformat(),
                requested=str(candidate.time_range),
                conflicts=e.conflicts,
            )
            raise

        reservations_created.labels(
            resource_id=resource_id, payment_method=reservation.payment_method.value
        ).inc()
        logger.info(
            "reservation_created",
            reservation_id=reservation.id,
            resource_id=resource_id,
            date=reservation.time_range.day.isoformat(),
            time_range=str(reservation.time_range),
            status=reservation.status.value,
            total_price=str(reservation.total_price),
        )
        self._emit(reservation, None, reservation.status, reservation.created_at)
        return reservation

    def modify_reservation(
        self,
        reservation_id: int,
        new_date: Optional[str | date] = None,
        new_start: Optional[str] = None,
        new_end: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> Reservation:
        """
        Move a reservation to another date/time and recompute its price.

        Omitted fields keep their current value. The reservation's own slot is
        excluded from the conflict check. Hourly bookings are re-measured from
        the new range (whole hours, rounded up); day/week/month bookings keep
        their duration. The new date must be after today.

        Raises:
            ReservationNotFound: Unknown reservation.
            PermissionDenied: ``actor_id`` is not the requester.
            IllegalTransition: The reservation is cancelled or completed.
            ValidationError: Invalid range, date not in the future, outside
                opening hours, or a duration above the unit maximum.
            SlotConflict: The new range overlaps another reservation.
        """
        current = self._reservation_or_404(reservation_id)
        self._ensure_owner(current, actor_id)
        if current.status not in RESCHEDULABLE_STATUSES:
            raise IllegalTransition(current.status.value, "rescheduled")

        new_range = TimeRange.parse(
            new_date if new_date is not None else current.time_range.day,
            new_start if new_start is not None else current.time_range.start_time,
            new_end if new_end is not None else current.time_range.end_time,
        )
        resource = self._resource_or_404(current.resource_id)
        details: list[dict[str, str]] = []
        if new_range.day <= self.today():
            details.append(
                {
                    "field": "date",
                    "message": "Cannot move a reservation to a past date or to today",
                }
            )
        details.extend(_window_details(resource, new_range))

        new_duration = current.duration
        if current.duration_type is DurationUnit.HOUR:
            try:
                new_duration = validate_duration(
                    math.ceil(new_range.duration_minutes / 60), DurationUnit.HOUR
                )
            except ValidationError as e:
                details.extend(_details(e))
        if details:
            raise ValidationError("Invalid reservation change", details)

        new_price = calculate_price(resource.rate_table, new_duration, current.duration_type)

        try:
            updated = self.store.try_reschedule(
                reservation_id,
                new_range,
                new_duration,
                new_price,
                RESCHEDULABLE_STATUSES,
                conflict_predicate(reservation_id),
            )
        except SlotConflict:
            slot_conflicts.labels(resource_id=current.resource_id).inc()
            raise

        logger.info(
            "reservation_modified",
            reservation_id=reservation_id,
            previous=f"{current.time_range.day} {current.time_range}",
            current=f"{new_range.day} {new_range}",
            duration=new_duration,
            total_price=str(new_price),
        )
        return updated

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _emit(
        self,
        reservation: Reservation,
        from_status: Optional[ReservationStatus],
        to_status: ReservationStatus,
        at: Optional[datetime],
    ) -> None:
        lifecycle_transitions.labels(
            from_status=from_status.value if from_status else "none",
            to_status=to_status.value,
        ).inc()
        event = TransitionEvent(
            reservation_id=reservation.id,  # type: ignore[arg-type]
            from_status=from_status,
            to_status=to_status,
            at=at or utc_now(),
        )
        publish_safely(self.publisher, event)

    def _transition(
        self,
        reservation_id: int,
        target: ReservationStatus,
        from_statuses: Optional[Iterable[ReservationStatus]] = None,
        payment_status: Optional[PaymentStatus] = None,
        actor_id: Optional[str] = None,
    ) -> Reservation:
        current = self._reservation_or_404(reservation_id)
        self._ensure_owner(current, actor_id)
        if from_statuses is not None and current.status not in frozenset(from_statuses):
            raise IllegalTransition(current.status.value, target.value)
        ensure_transition(current.status, target)

        if payment_status is None and target is ReservationStatus.CANCELLED:
            if current.payment_status is PaymentStatus.PAID:
                payment_status = PaymentStatus.REFUNDED

        updated = self.store.transition(reservation_id, current.status, target, payment_status)
        logger.info(
            "reservation_status_changed",
            reservation_id=reservation_id,
            from_status=current.status.value,
            to_status=target.value,
            payment_status=updated.payment_status.value,
        )
        self._emit(updated, current.status, target, updated.updated_at)
        return updated

    def cancel_reservation(self, reservation_id: int, actor_id: str) -> Reservation:
        """
        Owner cancellation; a paid reservation is marked refunded.

        Not allowed on the day of the reservation itself.
        """
        if not actor_id:
            raise PermissionDenied("Only the requester may cancel this reservation")
        current = self._reservation_or_404(reservation_id)
        self._ensure_owner(current, actor_id)
        if (
            can_transition(current.status, ReservationStatus.CANCELLED)
            and current.time_range.day == self.today()
        ):
            raise ValidationError.for_field(
                "date", "Reservations cannot be cancelled on the day itself"
            )
        return self._transition(
            reservation_id, ReservationStatus.CANCELLED, actor_id=actor_id
        )

    def confirm_reservation(self, reservation_id: int) -> Reservation:
        """Staff confirmation of an onsite-payment reservation."""
        return self._transition(
            reservation_id,
            ReservationStatus.CONFIRMED,
            from_statuses=[ReservationStatus.PENDING],
        )

    def complete_reservation(self, reservation_id: int) -> Reservation:
        return self._transition(reservation_id, ReservationStatus.COMPLETED)

    def mark_payment_settled(self, reservation_id: int) -> Reservation:
        return self._transition(
            reservation_id,
            ReservationStatus.CONFIRMED,
            from_statuses=[ReservationStatus.PAYMENT_PENDING],
            payment_status=PaymentStatus.PAID,
        )

    def mark_payment_failed(self, reservation_id: int) -> Reservation:
        return self._transition(
            reservation_id,
            ReservationStatus.CANCELLED,
            from_statuses=[ReservationStatus.PAYMENT_PENDING],
            payment_status=PaymentStatus.FAILED,
        )

    def expire_payment_pending(self, older_than: datetime) -> list[Reservation]:
        """
        Cancel every ``payment_pending`` reservation created before ``older_than``.

        A reservation settled between the lookup and its expiry is skipped.

        Returns:
            list[Reservation]: The reservations that were cancelled.
        """
        expired = []
        for reservation in self.store.list_expired_payment_pending(older_than):
            try:
                expired.append(self.mark_payment_failed(reservation.id))  # type: ignore[arg-type]
            except IllegalTransition as e:
                logger.info(
                    "payment_pending_expiry_skipped",
                    reservation_id=reservation.id,
                    current_status=e.current,
                )
        logger.info("payment_pending_expired", count=len(expired))
        return expired
