"""Conversion between calculator types and plain dictionaries.

Money is written as strings so that stored schedules round-trip without
losing precision; dates are ISO ``YYYY-MM-DD`` strings. The readers accept
numbers or strings and raise ``ValidationError`` on anything malformed.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .data_models import (
    EXPENSE_STATUS_APPROVED,
    RENT_STATUS_PAID,
    AmortizationEntry,
    DueClassification,
    DueItem,
    EMIPayment,
    ExpenseRecord,
    FinancialSplit,
    LoanStatus,
    LoanTerms,
    MonthlyReportRow,
    PeriodFinancials,
    RentDueSummary,
    RentPayment,
    RentWeek,
)
from .exceptions import ValidationError
from .utils import parse_date, to_decimal


def _require(data: Mapping[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValidationError(f"Missing required field: {key}") from None


def _int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Field {key} must be an integer; got {value!r}") from exc


def _optional_date(value: Optional[str]):
    return parse_date(value) if value else None


def terms_to_dict(terms: LoanTerms) -> Dict[str, Any]:
    return {
        "principal": str(terms.principal),
        "annual_rate_percent": str(terms.annual_rate_percent),
        "tenure_months": terms.tenure_months,
        "monthly_installment": str(terms.monthly_installment),
        "first_installment_date": terms.first_installment_date.isoformat(),
        "paid_installments_count": terms.paid_installments_count,
    }


def terms_from_dict(data: Mapping[str, Any]) -> LoanTerms:
    return LoanTerms(
        principal=to_decimal(_require(data, "principal")),
        annual_rate_percent=to_decimal(_require(data, "annual_rate_percent")),
        tenure_months=_int(_require(data, "tenure_months"), "tenure_months"),
        monthly_installment=to_decimal(_require(data, "monthly_installment")),
        first_installment_date=parse_date(_require(data, "first_installment_date")),
        paid_installments_count=_int(data.get("paid_installments_count", 0), "paid_installments_count"),
    )


def entry_to_dict(entry: AmortizationEntry) -> Dict[str, Any]:
    return {
        "month": entry.month,
        "interest_portion": str(entry.interest_portion),
        "principal_portion": str(entry.principal_portion),
        "outstanding_after": str(entry.outstanding_after),
        "due_date": entry.due_date.isoformat(),
        "is_paid": entry.is_paid,
        "paid_date": entry.paid_date.isoformat() if entry.paid_date else None,
        "paid_date_synthetic": entry.paid_date_synthetic,
    }


def entry_from_dict(data: Mapping[str, Any]) -> AmortizationEntry:
    return AmortizationEntry(
        month=_int(_require(data, "month"), "month"),
        interest_portion=to_decimal(_require(data, "interest_portion")),
        principal_portion=to_decimal(_require(data, "principal_portion")),
        outstanding_after=to_decimal(_require(data, "outstanding_after")),
        due_date=parse_date(_require(data, "due_date")),
        is_paid=bool(data.get("is_paid", False)),
        paid_date=_optional_date(data.get("paid_date")),
        paid_date_synthetic=bool(data.get("paid_date_synthetic", False)),
    )


def schedule_to_list(schedule: List[AmortizationEntry]) -> List[Dict[str, Any]]:
    return [entry_to_dict(e) for e in schedule]


def schedule_from_list(items: List[Mapping[str, Any]]) -> List[AmortizationEntry]:
    return [entry_from_dict(item) for item in items]


def status_to_dict(status: LoanStatus) -> Dict[str, Any]:
    return {
        "outstanding_loan": str(status.outstanding_loan),
        "next_due_entry": entry_to_dict(status.next_due_entry) if status.next_due_entry else None,
        "total_paid_to_date": str(status.total_paid_to_date),
        "paid_count": status.paid_count,
        "total_installments": status.total_installments,
        "completion_percent": str(status.completion_percent),
        "financing_status": status.financing_status,
    }


def _due_item_to_dict(item: DueItem) -> Dict[str, Any]:
    return {
        "index": item.index,
        "month": item.entry.month,
        "due_date": item.entry.due_date.isoformat(),
        "days_until_due": item.days_until_due,
        "days_past_due": item.days_past_due,
        "amount": str(item.amount),
    }


def classification_to_dict(result: DueClassification) -> Dict[str, Any]:
    return {
        "overdue": [_due_item_to_dict(i) for i in result.overdue],
        "due_soon": [_due_item_to_dict(i) for i in result.due_soon],
        "total_overdue": str(result.total_overdue),
        "total_due_soon": str(result.total_due_soon),
        "total_due": str(result.total_due),
    }


def payment_to_dict(payment: EMIPayment) -> Dict[str, Any]:
    return {
        "index": payment.index,
        "month": payment.month,
        "installment": str(payment.installment),
        "penalty": str(payment.penalty),
        "total": str(payment.total),
        "paid_date": payment.paid_date.isoformat(),
        "days_late": payment.days_late,
    }


def period_from_dict(data: Mapping[str, Any], defaults: Optional[Mapping[str, Any]] = None) -> PeriodFinancials:
    """Build ``PeriodFinancials`` from ``data``, filling rates from ``defaults``."""
    defaults = defaults or {}

    def rate(key: str):
        value = data.get(key, defaults.get(key, 0))
        return to_decimal(value)

    return PeriodFinancials(
        revenue=to_decimal(_require(data, "revenue")),
        expenses=to_decimal(data.get("expenses", 0)),
        ownership_type=str(_require(data, "ownership_type")).lower(),
        tax_rate_percent=rate("tax_rate_percent"),
        service_charge_rate_percent=rate("service_charge_rate_percent"),
        partner_share_percent=rate("partner_share_percent"),
    )


def split_to_dict(split: FinancialSplit) -> Dict[str, str]:
    return {key: str(getattr(split, key)) for key in FinancialSplit.__dataclass_fields__}


def report_row_to_dict(row: MonthlyReportRow) -> Dict[str, Any]:
    return {
        "month": row.label,
        "revenue": str(row.revenue),
        "expenses": str(row.expenses),
        "split": split_to_dict(row.split),
    }


def _rent_week_to_dict(week: RentWeek) -> Dict[str, Any]:
    return {
        "week_index": week.week_index,
        "week_start": week.week_start.isoformat(),
        "week_end": week.week_end.isoformat(),
        "amount": str(week.amount),
    }


def rent_summary_to_dict(summary: RentDueSummary) -> Dict[str, Any]:
    return {
        "overdue_weeks": [_rent_week_to_dict(w) for w in summary.overdue_weeks],
        "current_week": _rent_week_to_dict(summary.current_week) if summary.current_week else None,
        "total_overdue": str(summary.total_overdue),
        "due_now": str(summary.due_now),
        "total_due": str(summary.total_due),
    }


def load_rent_payments_csv(path: Path) -> List[RentPayment]:
    """Read rent payments from a CSV with ``vehicle_id,amount,paid_on[,status]`` columns."""
    payments: List[RentPayment] = []
    with path.open(newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            payments.append(
                RentPayment(
                    vehicle_id=_require(row, "vehicle_id").strip(),
                    amount=to_decimal(_require(row, "amount").strip()),
                    paid_on=parse_date(_require(row, "paid_on")),
                    status=(row.get("status") or RENT_STATUS_PAID).strip().lower(),
                )
            )
    return payments


def load_expenses_csv(path: Path) -> List[ExpenseRecord]:
    """Read expenses from a CSV with ``vehicle_id,amount,incurred_on[,status,description]`` columns."""
    expenses: List[ExpenseRecord] = []
    with path.open(newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            expenses.append(
                ExpenseRecord(
                    vehicle_id=_require(row, "vehicle_id").strip(),
                    amount=to_decimal(_require(row, "amount").strip()),
                    incurred_on=parse_date(_require(row, "incurred_on")),
                    status=(row.get("status") or EXPENSE_STATUS_APPROVED).strip().lower(),
                    description=(row.get("description") or "").strip(),
                )
            )
    return expenses
