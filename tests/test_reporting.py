from datetime import date
from decimal import Decimal

import pytest

from fleet_calc.data_models import ExpenseRecord, RentPayment
from fleet_calc.exceptions import ValidationError
from fleet_calc.reporting import (
    collected_rent,
    monthly_report,
    period_financials,
    report_totals,
    reporting_months,
)


@pytest.fixture
def payments():
    return [
        RentPayment("v1", Decimal("5000"), date(2024, 1, 3)),
        RentPayment("v1", Decimal("5000"), date(2024, 1, 31)),
        RentPayment("v1", Decimal("5000"), date(2024, 1, 17), status="pending"),
        RentPayment("v2", Decimal("7000"), date(2024, 1, 10)),
        RentPayment("v1", Decimal("5000"), date(2024, 2, 7)),
    ]


@pytest.fixture
def expenses():
    return [
        ExpenseRecord("v1", Decimal("2000"), date(2024, 1, 20), description="Tyres"),
        ExpenseRecord("v1", Decimal("1000"), date(2024, 1, 21), status="pending"),
        ExpenseRecord("v1", Decimal("6000"), date(2024, 2, 1)),
    ]


def test_reporting_months_for_each_period():
    assert reporting_months(2024, "month", month=2) == [(date(2024, 2, 1), date(2024, 2, 29))]
    assert reporting_months(2024, "quarter", quarter=4) == [
        (date(2024, 10, 1), date(2024, 10, 31)),
        (date(2024, 11, 1), date(2024, 11, 30)),
        (date(2024, 12, 1), date(2024, 12, 31)),
    ]
    assert len(reporting_months(2023, "year")) == 12


@pytest.mark.parametrize(
    "args",
    [
        (2024, "month", 13, None),
        (2024, "month", None, None),
        (2024, "quarter", None, 5),
        (2024, "week", None, None),
    ],
)
def test_reporting_months_rejects_bad_arguments(args):
    with pytest.raises(ValidationError):
        reporting_months(*args)


def test_only_paid_rent_in_range_is_collected(payments):
    """Month boundaries are inclusive, other vehicles and pending rent are ignored."""
    assert collected_rent(payments, "v1", date(2024, 1, 1), date(2024, 1, 31)) == Decimal("10000")


def test_period_financials_uses_approved_expenses(payments, expenses):
    period = period_financials(payments, expenses, "v1", date(2024, 1, 1), date(2024, 1, 31), "partner", Decimal("4"))

    assert period.revenue == Decimal("10000")
    assert period.expenses == Decimal("2000")
    assert period.ownership_type == "partner"


def test_quarterly_report(payments, expenses):
    months = reporting_months(2024, "quarter", quarter=1)
    rows = monthly_report(payments, expenses, "v1", months, "partner", Decimal("4"), Decimal("10"), Decimal("50"))

    assert [r.label for r in rows] == ["2024-01", "2024-02", "2024-03"]
    january, february, march = rows
    assert january.split.profit == Decimal("8000.00")
    assert january.split.tax == Decimal("320.00")
    assert january.split.partner_share == Decimal("3440.00")
    assert february.split.profit == Decimal("-1000.00")
    assert february.split.tax == 0
    assert march.revenue == 0

    totals = report_totals(rows)
    assert totals["revenue"] == Decimal("15000")
    assert totals["expenses"] == Decimal("8000")
    assert totals["profit"] == Decimal("7000.00")
    assert totals["tax"] == Decimal("320.00")
    assert totals["partner_share"] == Decimal("3440.00")


def test_report_totals_of_nothing():
    totals = report_totals([])

    assert totals["revenue"] == 0
    assert totals["owner_full_share"] == 0
