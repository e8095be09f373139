"""
Day availability for a resource: busy blocks, free blocks, and a slot grid.

The opening window comes from the resource's hours for that weekday (or the
configured default). Busy blocks are merged reservation ranges clipped to the
window, and free blocks are their exact complement, so together they tile the
window with no gap or overlap. Slots are tagged with the same
``TimeRange.overlaps`` predicate used for conflict detection.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Iterable, Optional

from coworking_scheduler.config import ALLOWED_SLOT_MINUTES, SLOT_MINUTES
from coworking_scheduler.errors import ValidationError
from coworking_scheduler.scheduling.conflicts import describe_conflicts, find_conflicts
from coworking_scheduler.scheduling.entities import Reservation, Resource
from coworking_scheduler.scheduling.lifecycle import OCCUPYING_STATUSES
from coworking_scheduler.scheduling.time_range import TimeRange

if TYPE_CHECKING:
    from coworking_scheduler.db.store import ReservationStore


@dataclass(frozen=True)
class Slot:
    time_range: TimeRange
    available: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.time_range.to_dict(),
            "available": self.available,
            "duration": self.time_range.duration_minutes,
        }


@dataclass(frozen=True)
class SlotCheck:
    """Result of checking one requested range; conflicts carry time ranges only."""

    time_range: TimeRange
    available: bool
    conflicts: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.time_range.to_dict(),
            "available": self.available,
            "conflicts": self.conflicts,
        }


@dataclass
class AvailabilityReport:
    resource_id: int
    day: date
    window: Optional[TimeRange]
    busy_blocks: list[TimeRange]
    free_blocks: list[TimeRange]
    slot_grid: list[Slot]
    slot_minutes: int
    available_for_booking: bool = True
    requested_slot: Optional[SlotCheck] = None
    consecutive_blocks: Optional[list[TimeRange]] = None

    @property
    def stats(self) -> dict[str, Any]:
        total = len(self.slot_grid)
        free = sum(1 for s in self.slot_grid if s.available)
        return {
            "total_slots": total,
            "available_slots": free,
            "occupied_slots": total - free,
            "occupancy_rate": round((total - free) / total * 100, 2) if total else 0.0,
        }

    @property
    def best_block(self) -> Optional[TimeRange]:
        """Longest free block; the earliest one wins a tie."""
        best = None
        for block in self.free_blocks:
            if best is None or block.duration_minutes > best.duration_minutes:
                best = block
        return best

    def to_dict(self) -> dict[str, Any]:
        def block(r: TimeRange) -> dict[str, Any]:
            return {**r.to_dict(), "duration": r.duration_minutes}

        best = self.best_block
        return {
            "resource_id": self.resource_id,
            "date": self.day.isoformat(),
            "available": self.available_for_booking and bool(self.free_blocks),
            "opening_hours": self.window.to_dict() if self.window else None,
            "slot_minutes": self.slot_minutes,
            "busy_blocks": [block(b) for b in self.busy_blocks],
            "free_blocks": [block(b) for b in self.free_blocks],
            "time_slots": [s.to_dict() for s in self.slot_grid],
            "availability": self.stats,
            "best_block": block(best) if best else None,
            "requested_slot": self.requested_slot.to_dict() if self.requested_slot else None,
            "consecutive_blocks": (
                [block(b) for b in self.consecutive_blocks]
                if self.consecutive_blocks is not None
                else None
            ),
        }


def validate_slot_minutes(slot_minutes: int) -> int:
    if slot_minutes not in ALLOWED_SLOT_MINUTES:
        allowed = ", ".join(str(m) for m in ALLOWED_SLOT_MINUTES)
        raise ValidationError.for_field(
            "slot_minutes", f"Slot size must be one of {allowed} minutes"
        )
    return slot_minutes


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Merge overlapping or touching ranges of the same day into sorted blocks."""
    merged: list[TimeRange] = []
    for current in sorted(ranges):
        if merged and merged[-1].day == current.day and current.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeRange(last.day, last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def clip(ranges: Iterable[TimeRange], window: TimeRange) -> list[TimeRange]:
    clipped = []
    for r in ranges:
        start, end = max(r.start, window.start), min(r.end, window.end)
        if r.day == window.day and start < end:
            clipped.append(TimeRange(r.day, start, end))
    return clipped


def complement(busy: list[TimeRange], window: TimeRange) -> list[TimeRange]:
    """Gaps between sorted, merged ``busy`` blocks inside ``window``."""
    free = []
    cursor = window.start
    for block in busy:
        if block.start > cursor:
            free.append(TimeRange(window.day, cursor, block.start))
        cursor = max(cursor, block.end)
    if cursor < window.end:
        free.append(TimeRange(window.day, cursor, window.end))
    return free


def slot_grid(window: TimeRange, busy: list[TimeRange], slot_minutes: int) -> list[Slot]:
    """Discretize ``window``; the final slot is cut short at closing time."""
    slots = []
    for start in range(window.start, window.end, slot_minutes):
        slot = TimeRange(window.day, start, min(start + slot_minutes, window.end))
        slots.append(Slot(slot, not any(slot.overlaps(b) for b in busy)))
    return slots


def compute_availability(
    resource: Resource,
    day: date,
    reservations: Iterable[Reservation],
    slot_minutes: int = SLOT_MINUTES,
) -> AvailabilityReport:
    """
    Build the availability report for ``resource`` on ``day``.

    Args:
        resource: The resource; supplies the opening window.
        day: Calendar date of interest.
        reservations: Reservations for that resource/day; non-occupying ones are ignored.
        slot_minutes: Grid granularity, one of 15, 30, 60, 120.

    Returns:
        AvailabilityReport: Empty free blocks and grid when the resource is closed that day.
    """
    validate_slot_minutes(slot_minutes)

    occupied = merge_ranges(
        r.time_range
        for r in reservations
        if r.status in OCCUPYING_STATUSES and r.time_range.day == day
    )
    window = resource.opening_window(day)

    if window is None:
        return AvailabilityReport(
            resource_id=resource.id,
            day=day,
            window=None,
            busy_blocks=occupied,
            free_blocks=[],
            slot_grid=[],
            slot_minutes=slot_minutes,
            available_for_booking=resource.available,
        )

    busy = clip(occupied, window)
    return AvailabilityReport(
        resource_id=resource.id,
        day=day,
        window=window,
        busy_blocks=busy,
        free_blocks=complement(busy, window),
        slot_grid=slot_grid(window, busy, slot_minutes),
        slot_minutes=slot_minutes,
        available_for_booking=resource.available,
    )


def consecutive_free_blocks(report: AvailabilityReport, minimum_minutes: int) -> list[TimeRange]:
    """Free blocks at least ``minimum_minutes`` long."""
    if minimum_minutes <= 0:
        raise ValidationError.for_field("minimum_minutes", "Minimum duration must be positive")
    return [b for b in report.free_blocks if b.duration_minutes >= minimum_minutes]


def check_slot(
    store: "ReservationStore",
    resource: Resource,
    day: date,
    candidate: TimeRange,
    exclude_reservation_id: Optional[int] = None,
) -> SlotCheck:
    """Advisory check of one range; available when no conflict is found."""
    conflicts = find_conflicts(store, resource.id, day, candidate, exclude_reservation_id)
    return SlotCheck(
        time_range=candidate,
        available=not conflicts,
        conflicts=describe_conflicts(conflicts),
    )
