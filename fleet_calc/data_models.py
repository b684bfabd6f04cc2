"""Data models for the fleet calculator.

This module defines dataclasses representing the entities the calculator
works with: the terms of a vehicle loan, the entries of its amortization
schedule, derived loan status and due lists, the financials of a reporting
period and the profit split computed from them, plus the rent and expense
records that feed period reports. Using dataclasses makes it easy to
construct, inspect and serialize these structures.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional

OWNERSHIP_COMPANY = "company"
OWNERSHIP_PARTNER = "partner"
OWNERSHIP_TYPES = (OWNERSHIP_COMPANY, OWNERSHIP_PARTNER)

FINANCING_CASH = "cash"
FINANCING_LOAN_ACTIVE = "loan_active"
FINANCING_LOAN_CLEARED = "loan_cleared"

RENT_STATUS_PAID = "paid"
EXPENSE_STATUS_APPROVED = "approved"


@dataclass(frozen=True)
class LoanTerms:
    """Terms of a vehicle loan, fixed when the vehicle is onboarded.

    Attributes
    ----------
    principal: Decimal
        Amount financed.
    annual_rate_percent: Decimal
        Nominal annual interest rate in percent (``12`` means 12 %).
    tenure_months: int
        Number of scheduled installments.
    monthly_installment: Decimal
        The EMI agreed with the lender. It is supplied by the caller rather
        than derived from principal, rate and tenure.
    first_installment_date: date
        Due date of the first installment.
    paid_installments_count: int
        Installments already paid before the vehicle was onboarded.
    """

    principal: Decimal
    annual_rate_percent: Decimal
    tenure_months: int
    monthly_installment: Decimal
    first_installment_date: date
    paid_installments_count: int = 0


@dataclass
class AmortizationEntry:
    """One scheduled installment.

    Entries are mutated in place when a payment is recorded; only ``is_paid``,
    ``paid_date`` and ``paid_date_synthetic`` ever change after generation.
    ``paid_date_synthetic`` is True when the paid date was made up for an
    installment paid before onboarding and is not a recorded fact.
    """

    month: int
    interest_portion: Decimal
    principal_portion: Decimal
    outstanding_after: Decimal
    due_date: date
    is_paid: bool = False
    paid_date: Optional[date] = None
    paid_date_synthetic: bool = False

    @property
    def installment(self) -> Decimal:
        """Amount due for this entry (smaller than the EMI on the last one)."""
        return self.interest_portion + self.principal_portion


@dataclass
class LoanStatus:
    """Derived, never stored, summary of a schedule."""

    outstanding_loan: Decimal
    next_due_entry: Optional[AmortizationEntry]
    total_paid_to_date: Decimal
    paid_count: int
    total_installments: int
    completion_percent: Decimal
    financing_status: str


@dataclass
class DueItem:
    """An unpaid entry that is overdue or falls within the grace window.

    ``days_until_due`` is negative for overdue entries; ``days_past_due`` is
    its positive counterpart (zero when not overdue).
    """

    index: int
    entry: AmortizationEntry
    days_until_due: int
    amount: Decimal

    @property
    def days_past_due(self) -> int:
        return -self.days_until_due if self.days_until_due < 0 else 0

    @property
    def overdue(self) -> bool:
        return self.days_until_due < 0


@dataclass
class DueClassification:
    overdue: List[DueItem] = field(default_factory=list)
    due_soon: List[DueItem] = field(default_factory=list)

    @property
    def all_due(self) -> List[DueItem]:
        """Overdue then due-soon items, oldest first."""
        return sorted(self.overdue + self.due_soon, key=lambda item: item.index)

    @property
    def total_overdue(self) -> Decimal:
        return sum((item.amount for item in self.overdue), Decimal("0"))

    @property
    def total_due_soon(self) -> Decimal:
        return sum((item.amount for item in self.due_soon), Decimal("0"))

    @property
    def total_due(self) -> Decimal:
        return self.total_overdue + self.total_due_soon


@dataclass
class EMIPayment:
    """Receipt for one installment settled through ``settle_oldest``."""

    index: int
    month: int
    installment: Decimal
    penalty: Decimal
    paid_date: date
    days_late: int

    @property
    def total(self) -> Decimal:
        return self.installment + self.penalty


@dataclass(frozen=True)
class PeriodFinancials:
    """Revenue and expenses of one vehicle over one reporting period."""

    revenue: Decimal
    expenses: Decimal
    ownership_type: str
    tax_rate_percent: Decimal
    service_charge_rate_percent: Decimal = Decimal("0")
    partner_share_percent: Decimal = Decimal("0")


@dataclass
class FinancialSplit:
    """Outcome of the deduction cascade for one period.

    ``owner_share`` applies to partner vehicles and ``owner_full_share`` to
    company vehicles; at most one of them is non-zero. ``remainder`` is the
    profit left after tax and service charge (zero when not positive).
    """

    profit: Decimal
    tax: Decimal
    service_charge: Decimal
    remainder: Decimal
    partner_share: Decimal
    owner_share: Decimal
    owner_full_share: Decimal


@dataclass(frozen=True)
class RentPayment:
    """A weekly rent collection recorded against a vehicle."""

    vehicle_id: str
    amount: Decimal
    paid_on: date
    status: str = RENT_STATUS_PAID


@dataclass(frozen=True)
class ExpenseRecord:
    """An expense submitted for a vehicle; only approved ones count."""

    vehicle_id: str
    amount: Decimal
    incurred_on: date
    status: str = EXPENSE_STATUS_APPROVED
    description: str = ""


@dataclass
class MonthlyReportRow:
    label: str  # YYYY-MM
    start: date
    end: date
    revenue: Decimal
    expenses: Decimal
    split: FinancialSplit


@dataclass
class RentWeek:
    week_index: int
    week_start: date
    amount: Decimal

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)


@dataclass
class RentDueSummary:
    overdue_weeks: List[RentWeek] = field(default_factory=list)
    current_week: Optional[RentWeek] = None

    @property
    def total_overdue(self) -> Decimal:
        return sum((week.amount for week in self.overdue_weeks), Decimal("0"))

    @property
    def due_now(self) -> Decimal:
        return self.current_week.amount if self.current_week else Decimal("0")

    @property
    def total_due(self) -> Decimal:
        return self.total_overdue + self.due_now

    @property
    def all_due(self) -> List[RentWeek]:
        weeks = list(self.overdue_weeks)
        if self.current_week:
            weeks.append(self.current_week)
        return weeks
