"""
Rounding and date helpers shared by the aggregation and scoring engines.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from produce_bi.errors import InvalidArgumentError

DateLike = Union[date, datetime, str]


def round_half_up(value: float, ndigits: int = 2) -> float:
    """Round half away from zero, so 26.665 -> 26.67 and 79.5 -> 80."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_score(value: float) -> int:
    return int(round_half_up(value, 0))


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """numerator / denominator * scale, or 0 when the denominator is 0"""
    if denominator == 0:
        return 0.0
    return numerator / denominator * scale


def to_date(value: Optional[DateLike], argument: str = "date") -> Optional[date]:
    """Coerce a date, datetime or ISO string to a calendar date."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError as e:
            raise InvalidArgumentError(argument, value, str(e)) from e
    raise InvalidArgumentError(argument, value, "expected a date or ISO date string")
