"""Output helpers for the fleet calculator.

This module provides simple functions to render schedules, loan status, due
lists, profit splits and period reports in a tabular text format. We rely
only on built-in printing and string formatting.
"""

from __future__ import annotations

from typing import Dict, Iterable, List
from decimal import Decimal

from .data_models import (
    AmortizationEntry,
    DueClassification,
    FinancialSplit,
    LoanStatus,
    MonthlyReportRow,
    RentDueSummary,
)


def print_schedule(schedule: Iterable[AmortizationEntry]) -> None:
    """Print the amortization schedule as a simple table.

    Synthetic paid dates (installments paid before onboarding) are marked
    with an asterisk.
    """
    headers = ["Month", "DueDate", "Interest", "Principal", "Outstanding", "Paid", "PaidOn"]
    print("\t".join(headers))
    for entry in schedule:
        paid_on = ""
        if entry.paid_date:
            paid_on = entry.paid_date.isoformat() + ("*" if entry.paid_date_synthetic else "")
        row = [
            str(entry.month),
            entry.due_date.isoformat(),
            f"{entry.interest_portion:.2f}",
            f"{entry.principal_portion:.2f}",
            f"{entry.outstanding_after:.2f}",
            "Yes" if entry.is_paid else "No",
            paid_on,
        ]
        print("\t".join(row))


def print_warnings(warnings: List[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")


def print_status(status: LoanStatus) -> None:
    """Print the derived status of a loan in a human-readable format."""
    print("Loan status")
    print("-" * 72)
    print(f"Financing status   : {status.financing_status}")
    print(f"Outstanding loan   : {status.outstanding_loan:.2f}")
    print(f"Paid to date       : {status.total_paid_to_date:.2f}")
    print(f"Installments paid  : {status.paid_count}/{status.total_installments} ({status.completion_percent}%)")
    if status.next_due_entry:
        entry = status.next_due_entry
        print(f"Next due           : month {entry.month} on {entry.due_date.isoformat()} ({entry.installment:.2f})")
    else:
        print("Next due           : none")
    print("-" * 72)


def print_due(result: DueClassification) -> None:
    """Print overdue and due-soon installments, oldest first."""
    if not result.overdue and not result.due_soon:
        print("No installments are overdue or due soon.")
        return
    print("\t".join(["Month", "DueDate", "Amount", "State"]))
    for item in result.all_due:
        if item.overdue:
            state = f"overdue by {item.days_past_due} day(s)"
        else:
            state = f"due in {item.days_until_due} day(s)"
        print("\t".join([str(item.entry.month), item.entry.due_date.isoformat(), f"{item.amount:.2f}", state]))
    print("-" * 72)
    print(f"Total overdue      : {result.total_overdue:.2f}")
    print(f"Total due soon     : {result.total_due_soon:.2f}")
    print(f"Total due          : {result.total_due:.2f}")


def print_split(split: FinancialSplit, ownership_type: str) -> None:
    """Print the deduction cascade for one period."""
    print("Profit split")
    print("-" * 72)
    print(f"Profit             : {split.profit:.2f}")
    print(f"Tax                : {split.tax:.2f}")
    if ownership_type == "partner":
        print(f"Service charge     : {split.service_charge:.2f}")
        print(f"Remainder          : {split.remainder:.2f}")
        print(f"Partner share      : {split.partner_share:.2f}")
        print(f"Owner share        : {split.owner_share:.2f}")
    else:
        print(f"Owner full share   : {split.owner_full_share:.2f}")
    print("-" * 72)


def print_report(rows: Iterable[MonthlyReportRow], totals: Dict[str, Decimal]) -> None:
    """Print a monthly report followed by its totals row."""
    headers = ["Month", "Revenue", "Expenses", "Profit", "Tax", "Service", "Partner", "Owner", "OwnerFull"]
    print("\t".join(headers))
    for row in rows:
        s = row.split
        values = [row.revenue, row.expenses, s.profit, s.tax, s.service_charge, s.partner_share, s.owner_share, s.owner_full_share]
        print("\t".join([row.label] + [f"{v:.2f}" for v in values]))
    keys = ["revenue", "expenses", "profit", "tax", "service_charge", "partner_share", "owner_share", "owner_full_share"]
    print("\t".join(["Total"] + [f"{totals[k]:.2f}" for k in keys]))


def print_rent_summary(summary: RentDueSummary) -> None:
    if not summary.all_due:
        print("All rent collected.")
        return
    print("\t".join(["Week", "Start", "End", "Amount", "State"]))
    for week in summary.overdue_weeks:
        print("\t".join([str(week.week_index + 1), week.week_start.isoformat(), week.week_end.isoformat(), f"{week.amount:.2f}", "overdue"]))
    if summary.current_week:
        week = summary.current_week
        print("\t".join([str(week.week_index + 1), week.week_start.isoformat(), week.week_end.isoformat(), f"{week.amount:.2f}", "due now"]))
    print("-" * 72)
    print(f"Total overdue      : {summary.total_overdue:.2f}")
    print(f"Due now            : {summary.due_now:.2f}")
    print(f"Total due          : {summary.total_due:.2f}")
