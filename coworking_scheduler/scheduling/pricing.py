"""
Rate tables and deterministic reservation pricing.

Prices are ``Decimal`` amounts in the resource's currency. The product
``duration * rate`` is rounded exactly once, to the cent, half-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union

from coworking_scheduler.errors import InvalidDuration, UnsupportedDurationUnit, ValidationError

CENT = Decimal("0.01")

Number = Union[int, float, str, Decimal]


class DurationUnit(str, Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @classmethod
    def parse(cls, value: Any) -> "DurationUnit":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedDurationUnit(value) from None


# Longest booking accepted per unit (12 hours in a day, 30 days, 12 weeks, 12 months)
MAX_DURATION: dict[DurationUnit, int] = {
    DurationUnit.HOUR: 12,
    DurationUnit.DAY: 30,
    DurationUnit.WEEK: 12,
    DurationUnit.MONTH: 12,
}


def _to_decimal(value: Number, field: str) -> Decimal:
    try:
        # str() first so floats like 0.1 keep their printed value
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError.for_field(field, f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValidationError.for_field(field, f"Not a finite number: {value!r}")
    return result


@dataclass(frozen=True)
class RateTable:
    """
    Price per unit for a resource.

    A rate of 0 means the unit is not offered; ``calculate_price`` refuses it.
    Negative rates are rejected here.
    """

    hour: Decimal = Decimal("0")
    day: Decimal = Decimal("0")
    week: Decimal = Decimal("0")
    month: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        for unit in DurationUnit:
            value = _to_decimal(getattr(self, unit.value), f"price_per_{unit.value}")
            if value < 0:
                raise ValidationError.for_field(
                    f"price_per_{unit.value}", "Rate cannot be negative"
                )
            object.__setattr__(self, unit.value, value)

    def rate_for(self, unit: DurationUnit | str) -> Decimal:
        return getattr(self, DurationUnit.parse(unit).value)

    def offered_units(self) -> list[DurationUnit]:
        return [unit for unit in DurationUnit if self.rate_for(unit) > 0]

    def to_dict(self) -> dict[str, str]:
        return {unit.value: str(self.rate_for(unit)) for unit in DurationUnit}


def calculate_price(rate_table: RateTable, duration: Number, duration_type: Any) -> Decimal:
    """
    Price a reservation: ``duration * rate``, rounded half-up to the cent.

    Args:
        rate_table: The resource's rate table.
        duration: Number of units booked; must be > 0.
        duration_type: One of ``hour``, ``day``, ``week``, ``month``.

    Returns:
        Decimal: Total price with exactly two decimal places.

    Raises:
        UnsupportedDurationUnit: If ``duration_type`` is not a known unit.
        InvalidDuration: If ``duration <= 0``.
        ValidationError: If the resource does not offer the unit (rate is 0).

    Example:
        >>> calculate_price(RateTable(hour=Decimal("10")), 2, "hour")
        Decimal('20.00')
    """
    unit = DurationUnit.parse(duration_type)
    amount = _to_decimal(duration, "duration")
    if amount <= 0:
        raise InvalidDuration("Duration must be greater than zero")

    rate = rate_table.rate_for(unit)
    if rate == 0:
        raise ValidationError.for_field(
            "duration_type", f"This space is not offered per {unit.value}"
        )

    return (amount * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def validate_duration(duration: Number, duration_type: Any) -> int:
    """
    Check a requested duration against the per-unit booking policy.

    Returns:
        int: The duration as a whole number of units.

    Raises:
        UnsupportedDurationUnit: Unknown unit.
        InvalidDuration: Non-integer, non-positive, or above the unit's maximum.
    """
    unit = DurationUnit.parse(duration_type)
    amount = _to_decimal(duration, "duration")
    if amount <= 0:
        raise InvalidDuration("Duration must be greater than zero")
    if amount != amount.to_integral_value():
        raise InvalidDuration("Duration must be a whole number of units")
    if amount > MAX_DURATION[unit]:
        raise InvalidDuration(
            f"Duration cannot exceed {MAX_DURATION[unit]} {unit.value}(s)"
        )
    return int(amount)
