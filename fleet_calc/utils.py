"""Utility functions for the fleet calculator.

This module provides helpers for parsing user input into Python data types,
for rounding money and for handling dates, including adding months and
counting calendar months between two dates. It uses Python's ``datetime``
module to calculate month offsets.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, getcontext
from typing import Union

from .exceptions import ValidationError

getcontext().prec = 28  # increase decimal precision to avoid rounding errors

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Coerce ``value`` to ``Decimal`` going through ``str`` for floats.

    NaN and infinities are rejected like any other malformed number.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid numeric value: {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"Invalid numeric value: {value!r}")
    return result


def round_money(value: Decimal) -> Decimal:
    """Round a money amount to two places, halves away from zero."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def parse_date(value: Union[str, date]) -> date:
    """Parse an ISO ``YYYY-MM-DD`` string into a ``date``.

    ``datetime`` values are truncated to their date and plain ``date`` values
    are returned unchanged. A trailing time component (``2024-01-01T10:00``)
    is accepted and ignored.

    Raises
    ------
    ValidationError
        If the string is not a valid date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as exc:
        raise ValidationError(f"Invalid date string: {value}") from exc


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def month_end(year: int, month: int) -> date:
    """Return the last day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def months_between_inclusive(first: date, last: date) -> int:
    """Count calendar months from ``first`` to ``last``, both included.

    Days within the month are ignored, so Jan 31 to Feb 1 counts two months.
    Returns 0 when ``last`` falls in a month before ``first``.
    """
    months = (last.year - first.year) * 12 + (last.month - first.month) + 1
    return max(months, 0)


def parse_amount(value: str) -> Decimal:
    """Parse a money string with optional suffixes.

    Accepts plain numbers ("500000"), thousands separators ("5,00,000") and
    shorthand with ``k``/``l``/``m`` suffixes (thousand, lakh, million), e.g.
    "5l" meaning 500_000.
    """
    cleaned = str(value).strip().lower().replace(",", "").replace("_", "")
    factor = Decimal(1)
    if cleaned.endswith("k"):
        factor = Decimal(1_000)
        cleaned = cleaned[:-1]
    elif cleaned.endswith("l"):
        factor = Decimal(100_000)
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = Decimal(1_000_000)
        cleaned = cleaned[:-1]
    try:
        amount = Decimal(cleaned) * factor
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount: {value}") from exc
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value}")
    return amount
