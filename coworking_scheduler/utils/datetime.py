"""UTC timestamps and naive wall-clock parsing helpers."""

import re
from datetime import date, datetime, timezone

_TIME_RE = re.compile(r"([01][0-9]|2[0-3]):([0-5][0-9])")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

MINUTES_PER_DAY = 24 * 60


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Used for ``created_at``/``updated_at`` bookkeeping only. Reservation
    dates and times are naive local wall-clock values and never pass
    through this function.
    """
    return datetime.now(timezone.utc)


def is_valid_time(value: str) -> bool:
    """Return True for ``HH:MM`` 24-hour strings (``24:00`` is not accepted)."""
    return bool(value) and _TIME_RE.fullmatch(value) is not None


def time_to_minutes(value: str) -> int:
    """
    Convert ``HH:MM`` to minutes since midnight.

    ``24:00`` maps to 1440 so that a close time can express end of day.

    Raises:
        ValueError: If the string is not a valid time of day.
    """
    if value == "24:00":
        return MINUTES_PER_DAY
    match = _TIME_RE.fullmatch(value or "")
    if not match:
        raise ValueError(f"Invalid time of day: {value!r} (expected HH:MM)")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight back to ``HH:MM``."""
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def parse_date(value: str | date) -> date:
    """
    Parse a ``YYYY-MM-DD`` calendar date.

    Raises:
        ValueError: If the string is not a real ``YYYY-MM-DD`` date.
    """
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValueError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def local_today() -> date:
    """Today's date on the server's wall clock, matching the naive reservation dates."""
    return date.today()
