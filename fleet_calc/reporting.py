"""Period reports built from rent collections and expenses.

A report covers a single month, a quarter or a whole year and is broken down
per calendar month. Each month sums the paid rent and the approved expenses
of one vehicle and runs them through the profit split.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .data_models import (
    EXPENSE_STATUS_APPROVED,
    RENT_STATUS_PAID,
    ExpenseRecord,
    FinancialSplit,
    MonthlyReportRow,
    PeriodFinancials,
    RentPayment,
)
from .exceptions import ValidationError
from .split import compute_split
from .utils import ZERO, month_end

PERIOD_MONTH = "month"
PERIOD_QUARTER = "quarter"
PERIOD_YEAR = "year"
PERIODS = (PERIOD_MONTH, PERIOD_QUARTER, PERIOD_YEAR)


def reporting_months(
    year: int,
    period: str,
    month: Optional[int] = None,
    quarter: Optional[int] = None,
) -> List[Tuple[date, date]]:
    """Return ``(first_day, last_day)`` for every month in a reporting period.

    ``month`` (1-12) is required for monthly periods and ``quarter`` (1-4)
    for quarterly ones.
    """
    if period == PERIOD_MONTH:
        if month is None or not 1 <= month <= 12:
            raise ValidationError(f"Month must be between 1 and 12; got {month}")
        months = [month]
    elif period == PERIOD_QUARTER:
        if quarter is None or not 1 <= quarter <= 4:
            raise ValidationError(f"Quarter must be between 1 and 4; got {quarter}")
        start = (quarter - 1) * 3 + 1
        months = [start, start + 1, start + 2]
    elif period == PERIOD_YEAR:
        months = list(range(1, 13))
    else:
        raise ValidationError(f"Period must be one of {', '.join(PERIODS)}; got {period!r}")
    return [(date(year, m, 1), month_end(year, m)) for m in months]


def collected_rent(payments: Iterable[RentPayment], vehicle_id: str, start: date, end: date) -> Decimal:
    """Sum paid rent for ``vehicle_id`` collected between ``start`` and ``end`` inclusive."""
    return sum(
        (
            p.amount
            for p in payments
            if p.vehicle_id == vehicle_id and p.status == RENT_STATUS_PAID and start <= p.paid_on <= end
        ),
        ZERO,
    )


def approved_expenses(expenses: Iterable[ExpenseRecord], vehicle_id: str, start: date, end: date) -> Decimal:
    """Sum approved expenses for ``vehicle_id`` incurred between ``start`` and ``end`` inclusive."""
    return sum(
        (
            e.amount
            for e in expenses
            if e.vehicle_id == vehicle_id and e.status == EXPENSE_STATUS_APPROVED and start <= e.incurred_on <= end
        ),
        ZERO,
    )


def period_financials(
    payments: Iterable[RentPayment],
    expenses: Iterable[ExpenseRecord],
    vehicle_id: str,
    start: date,
    end: date,
    ownership_type: str,
    tax_rate_percent: Decimal,
    service_charge_rate_percent: Decimal = ZERO,
    partner_share_percent: Decimal = ZERO,
) -> PeriodFinancials:
    return PeriodFinancials(
        revenue=collected_rent(payments, vehicle_id, start, end),
        expenses=approved_expenses(expenses, vehicle_id, start, end),
        ownership_type=ownership_type,
        tax_rate_percent=tax_rate_percent,
        service_charge_rate_percent=service_charge_rate_percent,
        partner_share_percent=partner_share_percent,
    )


def monthly_report(
    payments: Iterable[RentPayment],
    expenses: Iterable[ExpenseRecord],
    vehicle_id: str,
    months: Iterable[Tuple[date, date]],
    ownership_type: str,
    tax_rate_percent: Decimal,
    service_charge_rate_percent: Decimal = ZERO,
    partner_share_percent: Decimal = ZERO,
) -> List[MonthlyReportRow]:
    """Build one report row per month range in ``months``."""
    payments = list(payments)
    expenses = list(expenses)
    rows: List[MonthlyReportRow] = []
    for start, end in months:
        period = period_financials(
            payments,
            expenses,
            vehicle_id,
            start,
            end,
            ownership_type,
            tax_rate_percent,
            service_charge_rate_percent,
            partner_share_percent,
        )
        rows.append(
            MonthlyReportRow(
                label=start.strftime("%Y-%m"),
                start=start,
                end=end,
                revenue=period.revenue,
                expenses=period.expenses,
                split=compute_split(period),
            )
        )
    return rows


def report_totals(rows: Iterable[MonthlyReportRow]) -> Dict[str, Decimal]:
    """Sum revenue, expenses and every split field across ``rows``.

    Each month is split on its own, so a loss in one month does not offset
    the tax or shares of another.
    """
    keys = ("revenue", "expenses") + tuple(FinancialSplit.__dataclass_fields__)
    totals: Dict[str, Decimal] = {key: ZERO for key in keys}
    for row in rows:
        totals["revenue"] += row.revenue
        totals["expenses"] += row.expenses
        for key in FinancialSplit.__dataclass_fields__:
            totals[key] += getattr(row.split, key)
    return totals
