"""Core calculation engine for vehicle loans.

This module builds the EMI amortization schedule of a vehicle loan and
answers the questions asked of it afterwards: how much principal is still
outstanding, which installment is next, which ones are overdue or due soon,
and what happens when a payment is recorded. All functions are pure apart
from the explicit payment operations (``mark_paid`` and ``settle_oldest``),
which mutate exactly the entries they settle.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal, getcontext
from typing import Dict, List, Optional, Sequence

from .data_models import (
    FINANCING_CASH,
    FINANCING_LOAN_ACTIVE,
    FINANCING_LOAN_CLEARED,
    AmortizationEntry,
    DueClassification,
    DueItem,
    EMIPayment,
    LoanStatus,
    LoanTerms,
)
from .exceptions import PaymentError, ValidationError
from .utils import ZERO, add_months, months_between_inclusive, round_money

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

DEFAULT_GRACE_DAYS = 3
DEFAULT_SYNTHETIC_PAID_OFFSET_DAYS = 3


def validate_terms(terms: LoanTerms) -> None:
    """Raise ``ValidationError`` if ``terms`` cannot produce a schedule."""
    if terms.tenure_months <= 0:
        raise ValidationError("Tenure must be a positive number of months")
    for name in ("principal", "annual_rate_percent", "monthly_installment"):
        if not Decimal(getattr(terms, name)).is_finite():
            raise ValidationError(f"{name} must be a finite number")
    if terms.principal < 0:
        raise ValidationError("Principal cannot be negative")
    if terms.annual_rate_percent < 0:
        raise ValidationError("Interest rate cannot be negative")
    if terms.monthly_installment < 0:
        raise ValidationError("Monthly installment cannot be negative")
    if terms.paid_installments_count < 0:
        raise ValidationError("Paid installments count cannot be negative")


def generate_schedule(
    terms: LoanTerms,
    synthetic_paid_offset_days: int = DEFAULT_SYNTHETIC_PAID_OFFSET_DAYS,
) -> List[AmortizationEntry]:
    """Compute the amortization schedule of a loan.

    Each month accrues interest on the outstanding principal and applies the
    rest of the installment to principal. The principal portion is capped at
    the outstanding balance and never drops below zero, so an installment
    smaller than the interest leaves the balance unchanged instead of growing
    it. Generation stops as soon as the balance is cleared, which can happen
    before ``tenure_months`` when the installment is generous.

    Entries for months up to ``paid_installments_count`` are marked paid. The
    real payment dates of those installments are unknown, so their
    ``paid_date`` is set ``synthetic_paid_offset_days`` before the due date
    and ``paid_date_synthetic`` is set.

    Parameters
    ----------
    terms: LoanTerms
        The loan terms.
    synthetic_paid_offset_days: int
        Offset used for the made-up paid dates of pre-paid entries.

    Returns
    -------
    List[AmortizationEntry]
        Entries ordered by month. Money fields are rounded to two places while
        the running balance is carried at full precision.

    Raises
    ------
    ValidationError
        If the terms are malformed.
    """
    validate_terms(terms)

    monthly_rate = terms.annual_rate_percent / Decimal(12) / Decimal(100)
    outstanding = terms.principal
    schedule: List[AmortizationEntry] = []

    for month in range(1, terms.tenure_months + 1):
        interest = outstanding * monthly_rate
        principal_portion = min(terms.monthly_installment - interest, outstanding)
        if principal_portion < 0:
            principal_portion = ZERO
        outstanding -= principal_portion

        due_date = add_months(terms.first_installment_date, month - 1)
        is_paid = month <= terms.paid_installments_count
        paid_date: Optional[date] = None
        if is_paid:
            paid_date = due_date - timedelta(days=synthetic_paid_offset_days)

        schedule.append(
            AmortizationEntry(
                month=month,
                interest_portion=round_money(interest),
                principal_portion=round_money(principal_portion),
                outstanding_after=round_money(outstanding),
                due_date=due_date,
                is_paid=is_paid,
                paid_date=paid_date,
                paid_date_synthetic=is_paid,
            )
        )

        if outstanding <= 0:
            break

    logger.debug(
        "Generated %d of %d installments (principal=%s, rate=%s%%, emi=%s)",
        len(schedule),
        terms.tenure_months,
        terms.principal,
        terms.annual_rate_percent,
        terms.monthly_installment,
    )
    if has_residual_balance(schedule):
        logger.warning(
            "Schedule ends with %s outstanding after %d installments",
            schedule[-1].outstanding_after,
            len(schedule),
        )
    return schedule


def has_residual_balance(schedule: Sequence[AmortizationEntry]) -> bool:
    """Return True when the last entry still leaves principal outstanding."""
    return bool(schedule) and schedule[-1].outstanding_after > 0


def schedule_warnings(schedule: Sequence[AmortizationEntry]) -> List[str]:
    """Return warnings the caller should show alongside a schedule."""
    warnings: List[str] = []
    if not has_residual_balance(schedule):
        return warnings
    last = schedule[-1]
    stalled = [e.month for e in schedule if e.principal_portion == 0]
    if stalled:
        warnings.append(
            f"Installment does not cover interest in {len(stalled)} month(s) "
            f"starting month {stalled[0]}; principal is not reduced in those months"
        )
    warnings.append(
        f"Loan is not repaid within the tenure: {last.outstanding_after} "
        f"remains outstanding after month {last.month}"
    )
    return warnings


def paid_installments_between(first_installment_date: date, last_paid_date: date) -> int:
    """Number of installments paid from the first due date to ``last_paid_date``.

    Counts calendar months inclusively, so a vehicle whose first installment
    was due in January and whose last paid installment was in March has paid
    three installments.
    """
    return months_between_inclusive(first_installment_date, last_paid_date)


def derive_status(schedule: Sequence[AmortizationEntry]) -> LoanStatus:
    """Summarize a schedule's repayment progress.

    ``outstanding_loan`` is the sum of the principal portions of all unpaid
    entries. It is used everywhere in place of the last ``outstanding_after``
    so that an out-of-order payment history still yields a consistent figure.
    """
    unpaid = [e for e in schedule if not e.is_paid]
    paid = [e for e in schedule if e.is_paid]

    outstanding = sum((e.principal_portion for e in unpaid), ZERO)
    total_paid = sum((e.interest_portion + e.principal_portion for e in paid), ZERO)
    total = len(schedule)
    if total:
        completion = round_money(Decimal(len(paid)) * 100 / Decimal(total))
    else:
        completion = ZERO

    if not schedule:
        financing_status = FINANCING_CASH
    elif outstanding > 0:
        financing_status = FINANCING_LOAN_ACTIVE
    else:
        financing_status = FINANCING_LOAN_CLEARED

    return LoanStatus(
        outstanding_loan=outstanding,
        next_due_entry=unpaid[0] if unpaid else None,
        total_paid_to_date=total_paid,
        paid_count=len(paid),
        total_installments=total,
        completion_percent=completion,
        financing_status=financing_status,
    )


def days_until_due(entry: AmortizationEntry, today: date) -> int:
    return (entry.due_date - today).days


def can_pay(entry: AmortizationEntry, today: date, grace_days_before_due: int = DEFAULT_GRACE_DAYS) -> bool:
    """Return True if ``entry`` may be settled on ``today``.

    Installments open for payment ``grace_days_before_due`` days before their
    due date and stay open indefinitely once overdue.
    """
    if entry.is_paid:
        return False
    return days_until_due(entry, today) <= grace_days_before_due


def classify(
    schedule: Sequence[AmortizationEntry],
    today: date,
    grace_days_before_due: int = DEFAULT_GRACE_DAYS,
) -> DueClassification:
    """Label unpaid entries as overdue or due soon.

    Entries further than ``grace_days_before_due`` days away are left out.
    The classifier does not mutate anything; it only labels.
    """
    result = DueClassification()
    for index, entry in enumerate(schedule):
        if entry.is_paid:
            continue
        delta = days_until_due(entry, today)
        if delta < 0:
            result.overdue.append(DueItem(index, entry, delta, entry.installment))
        elif delta <= grace_days_before_due:
            result.due_soon.append(DueItem(index, entry, delta, entry.installment))
    return result


def mark_paid(schedule: List[AmortizationEntry], index: int, paid_date: date) -> AmortizationEntry:
    """Record the payment of the entry at ``index`` (0-based).

    Only the addressed entry changes; the rest of the schedule, including
    balances, is left as generated.

    Raises
    ------
    PaymentError
        If ``index`` is out of range or the entry is already paid.
    """
    if index < 0 or index >= len(schedule):
        raise PaymentError(f"EMI at index {index} not found")
    entry = schedule[index]
    if entry.is_paid:
        raise PaymentError(f"EMI for month {entry.month} is already paid")
    entry.is_paid = True
    entry.paid_date = paid_date
    entry.paid_date_synthetic = False
    logger.info("EMI for month %d marked paid on %s", entry.month, paid_date.isoformat())
    return entry


def toggle_sequential_selection(ordered: Sequence[int], selected: Sequence[int], index: int) -> List[int]:
    """Toggle ``index`` in a selection that must stay a prefix of ``ordered``.

    Selecting an item also selects every older item; deselecting an item also
    deselects every newer one. Indices not in ``ordered`` leave the selection
    unchanged.
    """
    if index not in ordered:
        return list(selected)
    position = list(ordered).index(index)
    if index in selected:
        return list(ordered[:position])
    return list(ordered[: position + 1])


def settle_oldest(
    schedule: List[AmortizationEntry],
    count: int,
    paid_date: date,
    grace_days_before_due: int = DEFAULT_GRACE_DAYS,
    penalties: Optional[Dict[int, Decimal]] = None,
) -> List[EMIPayment]:
    """Settle the ``count`` oldest payable entries.

    Payable entries are the ones ``can_pay`` accepts on ``paid_date``. Entries
    are settled strictly oldest first. ``penalties`` maps an entry index to a
    late fee recorded on its receipt.

    Raises
    ------
    PaymentError
        If ``count`` is not positive or exceeds the number of payable entries.
    """
    if count <= 0:
        raise PaymentError("Select at least one EMI to pay")
    penalties = penalties or {}
    payable = [i for i, e in enumerate(schedule) if can_pay(e, paid_date, grace_days_before_due)]
    if count > len(payable):
        raise PaymentError(f"Only {len(payable)} EMI(s) can be paid on {paid_date.isoformat()}, got {count}")

    for index, penalty in penalties.items():
        if penalty < 0:
            raise PaymentError(f"Penalty for EMI at index {index} cannot be negative")

    receipts: List[EMIPayment] = []
    for index in payable[:count]:
        entry = schedule[index]
        late_by = -days_until_due(entry, paid_date)
        penalty = penalties.get(index, ZERO)
        mark_paid(schedule, index, paid_date)
        receipts.append(
            EMIPayment(
                index=index,
                month=entry.month,
                installment=entry.installment,
                penalty=penalty,
                paid_date=paid_date,
                days_late=late_by if late_by > 0 else 0,
            )
        )
    return receipts
