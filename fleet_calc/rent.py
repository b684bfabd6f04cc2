"""Weekly rent tracking for a driver assignment.

Rent is collected weekly from the day the assignment starts. A week counts as
collected when a paid rent record starts on the same day; otherwise it is
overdue once the week has ended, or due now while today falls inside it.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from .data_models import RentDueSummary, RentWeek
from .exceptions import ValidationError
from .utils import add_months

DEFAULT_AGREEMENT_MONTHS = 12
DEFAULT_HORIZON_WEEKS = 52


def agreement_weeks(assignment_start: date, agreement_months: int) -> int:
    """Number of rent weeks in an agreement, counting a partial last week."""
    agreement_end = add_months(assignment_start, agreement_months)
    return math.ceil((agreement_end - assignment_start).days / 7)


def rent_due_summary(
    assignment_start: date,
    weekly_rent: Decimal,
    paid_week_starts: Iterable[date],
    today: date,
    agreement_months: int = DEFAULT_AGREEMENT_MONTHS,
    horizon_weeks: int = DEFAULT_HORIZON_WEEKS,
) -> RentDueSummary:
    """Find the uncollected rent weeks of an assignment as of ``today``.

    Only the first ``horizon_weeks`` weeks of the agreement are examined.

    Raises
    ------
    ValidationError
        If the rent is negative or the agreement length is not positive.
    """
    if weekly_rent < 0:
        raise ValidationError("Weekly rent cannot be negative")
    if agreement_months <= 0:
        raise ValidationError("Agreement duration must be a positive number of months")

    paid = set(paid_week_starts)
    summary = RentDueSummary()
    total_weeks = min(agreement_weeks(assignment_start, agreement_months), horizon_weeks)

    for week_index in range(total_weeks):
        week = RentWeek(
            week_index=week_index,
            week_start=assignment_start + timedelta(days=week_index * 7),
            amount=weekly_rent,
        )
        if week.week_start in paid:
            continue
        if week.week_end < today:
            summary.overdue_weeks.append(week)
        elif week.week_start <= today <= week.week_end:
            summary.current_week = week
    return summary
