"""Amount validation, rounding and shared numeric policy."""

from __future__ import annotations

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from ..errors import ValidationError

# Allocations may exceed the budget total by at most one cent.
ALLOCATION_TOLERANCE = 0.01
# Upper bound for stored utilization and goal progress percentages.
PERCENT_CAP = 200.0
SECONDS_PER_DAY = 24 * 60 * 60
DAYS_PER_MONTH = 30


def to_cents(value: float) -> float:
    """Round to two decimal places using half-up rounding."""

    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def validate_amount(value: float, *, field: str, allow_zero: bool = False) -> float:
    """Return ``value`` as float if it is finite, positive and has ≤2 decimals."""

    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValidationError(f"{field} must be a number") from exc
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if number < 0 or (number == 0 and not allow_zero):
        qualifier = "cannot be negative" if allow_zero else "must be greater than 0"
        raise ValidationError(f"{field} {qualifier}")
    if number != number.quantize(Decimal("0.01")):
        raise ValidationError(f"{field} must have maximum 2 decimal places")
    return float(number)


def percent(part: float, whole: float) -> float:
    """Return ``part / whole * 100`` or 0 when ``whole`` is zero."""

    if whole == 0:
        return 0.0
    return (part / whole) * 100


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from ``start`` to ``end`` (negative when reversed)."""

    return (end - start).total_seconds() / SECONDS_PER_DAY


def ceil_days(start: datetime, end: datetime) -> int:
    return math.ceil(days_between(start, end))


def floor_days(start: datetime, end: datetime) -> int:
    return math.floor(days_between(start, end))
