from datetime import date
from decimal import Decimal

import pytest

from fleet_calc.exceptions import ValidationError
from fleet_calc.rent import agreement_weeks, rent_due_summary


def test_agreement_weeks_counts_partial_week():
    assert agreement_weeks(date(2024, 1, 1), 1) == 5
    assert agreement_weeks(date(2024, 1, 1), 12) == 53


def test_overdue_and_current_weeks():
    summary = rent_due_summary(
        date(2024, 1, 1),
        Decimal("3000"),
        [date(2024, 1, 1)],
        today=date(2024, 1, 24),
    )

    assert [w.week_start for w in summary.overdue_weeks] == [date(2024, 1, 8), date(2024, 1, 15)]
    assert summary.current_week.week_start == date(2024, 1, 22)
    assert summary.current_week.week_end == date(2024, 1, 28)
    assert summary.total_overdue == Decimal("6000")
    assert summary.due_now == Decimal("3000")
    assert summary.total_due == Decimal("9000")


def test_paid_current_week_is_not_due():
    summary = rent_due_summary(
        date(2024, 1, 1),
        Decimal("3000"),
        [date(2024, 1, 1), date(2024, 1, 8)],
        today=date(2024, 1, 10),
    )

    assert summary.overdue_weeks == []
    assert summary.current_week is None
    assert summary.total_due == 0


def test_payment_on_another_day_does_not_cover_week():
    summary = rent_due_summary(date(2024, 1, 1), Decimal("3000"), [date(2024, 1, 2)], today=date(2024, 1, 10))

    assert [w.week_index for w in summary.overdue_weeks] == [0]


def test_agreement_end_limits_weeks():
    """After a one-month agreement has ended, only its five weeks are owed."""
    summary = rent_due_summary(
        date(2024, 1, 1), Decimal("2500"), [], today=date(2024, 3, 1), agreement_months=1
    )

    assert len(summary.overdue_weeks) == 5
    assert summary.current_week is None
    assert summary.total_overdue == Decimal("12500")


def test_horizon_limits_weeks():
    summary = rent_due_summary(
        date(2024, 1, 1), Decimal("100"), [], today=date(2026, 1, 1), agreement_months=24, horizon_weeks=10
    )

    assert len(summary.overdue_weeks) == 10


def test_before_assignment_nothing_is_due():
    summary = rent_due_summary(date(2024, 1, 1), Decimal("3000"), [], today=date(2023, 12, 25))

    assert summary.total_due == 0


@pytest.mark.parametrize("rent,months", [("-1", 12), ("3000", 0)])
def test_invalid_assignment_is_rejected(rent, months):
    with pytest.raises(ValidationError):
        rent_due_summary(date(2024, 1, 1), Decimal(rent), [], date(2024, 2, 1), agreement_months=months)
