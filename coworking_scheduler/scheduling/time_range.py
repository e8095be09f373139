"""
Half-open time ranges on a single calendar day.

All values are naive local wall-clock times: a range is a calendar date plus
start/end minutes since midnight. There is no timezone model; cross-midnight
ranges are not representable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from coworking_scheduler.errors import ValidationError
from coworking_scheduler.utils.datetime import (
    MINUTES_PER_DAY,
    minutes_to_time,
    parse_date,
    time_to_minutes,
)


@dataclass(frozen=True, order=True)
class TimeRange:
    """
    Interval ``[start, end)`` on ``day``, in minutes since midnight.

    Construction fails with ``ValidationError`` unless ``0 <= start < end <= 1440``,
    so a zero-length or inverted range can never exist.
    """

    day: date
    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start < MINUTES_PER_DAY or not 0 < self.end <= MINUTES_PER_DAY:
            raise ValidationError.for_field("start_time", "Time of day out of range")
        if self.start >= self.end:
            raise ValidationError.for_field("end_time", "End time must be after start time")

    @classmethod
    def parse(cls, day: str | date, start_time: str, end_time: str) -> "TimeRange":
        """
        Build a range from boundary strings (``YYYY-MM-DD``, ``HH:MM``).

        Raises:
            ValidationError: With one detail per malformed field.
        """
        details = []
        parsed_day = start = end = None
        try:
            parsed_day = parse_date(day)
        except ValueError as e:
            details.append({"field": "date", "message": str(e)})
        try:
            start = time_to_minutes(start_time)
            if start == MINUTES_PER_DAY:
                raise ValueError("Start time cannot be 24:00")
        except ValueError as e:
            details.append({"field": "start_time", "message": str(e)})
        try:
            end = time_to_minutes(end_time)
        except ValueError as e:
            details.append({"field": "end_time", "message": str(e)})

        if details:
            raise ValidationError("Invalid time range", details)
        return cls(parsed_day, start, end)  # type: ignore[arg-type]

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Half-open intersection test.

        A range ending at 14:00 does not overlap one starting at 14:00, and
        ranges on different dates never overlap.
        """
        return self.day == other.day and self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        return self.day == other.day and self.start <= other.start and other.end <= self.end

    def with_day(self, day: date) -> "TimeRange":
        return TimeRange(day, self.start, self.end)

    def to_dict(self) -> dict[str, str]:
        return {"start_time": self.start_time, "end_time": self.end_time}

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """Module-level alias of :meth:`TimeRange.overlaps` for use as a predicate."""
    return a.overlaps(b)
