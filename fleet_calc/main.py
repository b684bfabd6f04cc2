"""Command-line interface for the fleet calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can generate a vehicle's EMI schedule, inspect its
repayment status and due installments, compute the profit split of a period,
build monthly reports from rent and expense CSV files and check which rent
weeks of an assignment are uncollected. Schedules can be printed to the
terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from datetime import date
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .config import CalculatorDefaults, load_defaults
from .data_models import OWNERSHIP_TYPES, AmortizationEntry, LoanTerms, PeriodFinancials
from .engine import (
    classify,
    derive_status,
    generate_schedule,
    paid_installments_between,
    schedule_warnings,
)
from .exceptions import ValidationError
from .formatter import (
    print_due,
    print_rent_summary,
    print_report,
    print_schedule,
    print_split,
    print_status,
    print_warnings,
)
from .rent import rent_due_summary
from .reporting import PERIODS, monthly_report, report_totals, reporting_months
from .serialization import (
    classification_to_dict,
    load_expenses_csv,
    load_rent_payments_csv,
    rent_summary_to_dict,
    report_row_to_dict,
    schedule_to_list,
    split_to_dict,
    status_to_dict,
    terms_to_dict,
)
from .split import compute_split
from .utils import parse_amount, parse_date, to_decimal

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _defaults() -> CalculatorDefaults:
    try:
        return load_defaults()
    except ValidationError as exc:
        raise click.ClickException(str(exc))


def _amount(value: str, name: str):
    try:
        return parse_amount(value)
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint=name)


def _date(value: str, name: str) -> date:
    try:
        return parse_date(value)
    except ValidationError as exc:
        raise click.BadParameter(str(exc), param_hint=name)


def _rate(value: Optional[str], default, name: str):
    if value is None:
        return default
    text = value.strip().rstrip("%")
    try:
        return to_decimal(text)
    except ValidationError:
        raise click.BadParameter(f"Invalid percentage: {value}", param_hint=name)


def build_terms_from_options(
    principal: str,
    rate: Optional[str],
    tenure: int,
    emi: str,
    first_installment: str,
    paid_installments: Optional[int],
    last_paid_date: Optional[str],
    defaults: CalculatorDefaults,
) -> LoanTerms:
    """Turn raw option values into ``LoanTerms``.

    The paid installment count is either given directly or derived from the
    date of the last paid installment, capped at the tenure.
    """
    if paid_installments is not None and last_paid_date:
        raise click.BadParameter("Use either --paid-installments or --last-paid-date, not both")
    first_date = _date(first_installment, "--first-installment")
    paid_count = paid_installments or 0
    if last_paid_date:
        paid_count = min(paid_installments_between(first_date, _date(last_paid_date, "--last-paid-date")), tenure)
    return LoanTerms(
        principal=_amount(principal, "--principal"),
        annual_rate_percent=_rate(rate, defaults.default_interest_rate_percent, "--rate"),
        tenure_months=tenure,
        monthly_installment=_amount(emi, "--emi"),
        first_installment_date=first_date,
        paid_installments_count=paid_count,
    )


def loan_options(func: Callable) -> Callable:
    """Attach the loan options shared by ``schedule``, ``status`` and ``due``.

    The wrapped command receives ``terms`` and ``schedule`` instead of the raw
    option values.
    """

    @click.option("--principal", "-p", "principal", required=True, help="Amount financed")
    @click.option("--rate", "-r", "rate", help="Annual interest rate (percent)")
    @click.option("--tenure", "-t", "tenure", required=True, type=int, help="Loan tenure in months")
    @click.option("--emi", "-e", "emi", required=True, help="Fixed monthly installment")
    @click.option("--first-installment", "-s", "first_installment", required=True, help="First installment due date (YYYY-MM-DD)")
    @click.option("--paid-installments", "paid_installments", type=int, help="Installments already paid before onboarding")
    @click.option("--last-paid-date", "last_paid_date", help="Due date of the last installment paid before onboarding (YYYY-MM-DD)")
    @click.option("--paid-offset-days", "paid_offset_days", type=int, help="Days before the due date used for made-up paid dates")
    @wraps(func)
    def wrapper(
        principal: str,
        rate: Optional[str],
        tenure: int,
        emi: str,
        first_installment: str,
        paid_installments: Optional[int],
        last_paid_date: Optional[str],
        paid_offset_days: Optional[int],
        **kwargs: Any,
    ):
        defaults = _defaults()
        terms = build_terms_from_options(
            principal, rate, tenure, emi, first_installment, paid_installments, last_paid_date, defaults
        )
        offset = defaults.synthetic_paid_offset_days if paid_offset_days is None else paid_offset_days
        try:
            schedule = generate_schedule(terms, synthetic_paid_offset_days=offset)
        except ValidationError as exc:
            raise click.BadParameter(str(exc))
        return func(terms=terms, schedule=schedule, defaults=defaults, **kwargs)

    return wrapper


def export_to_json(path: Path, terms: LoanTerms, schedule: List[AmortizationEntry]) -> None:
    """Export terms, status and schedule to a JSON file."""
    data = {
        "terms": terms_to_dict(terms),
        "status": status_to_dict(derive_status(schedule)),
        "warnings": schedule_warnings(schedule),
        "schedule": schedule_to_list(schedule),
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[AmortizationEntry]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Due_Date",
        "Interest",
        "Principal",
        "Outstanding",
        "Paid",
        "Paid_Date",
        "Paid_Date_Synthetic",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.month,
                    e.due_date.isoformat(),
                    f"{e.interest_portion:.2f}",
                    f"{e.principal_portion:.2f}",
                    f"{e.outstanding_after:.2f}",
                    e.is_paid,
                    e.paid_date.isoformat() if e.paid_date else "",
                    e.paid_date_synthetic,
                ]
            )


def _echo_json(data: Dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option(
    "--log-level",
    "log_level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """Loan, rent and profit-split calculator for a rental fleet."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(terms: LoanTerms, schedule: List[AmortizationEntry], defaults: CalculatorDefaults, output: Optional[str]) -> None:
    """Generate and print the EMI amortization schedule."""
    warnings = schedule_warnings(schedule)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, terms, schedule)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
        click.echo(f"Schedule exported to {path}")
    else:
        print_schedule(schedule)
    print_warnings(warnings)


@cli.command()
@loan_options
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text")
def status(terms: LoanTerms, schedule: List[AmortizationEntry], defaults: CalculatorDefaults, as_json: bool) -> None:
    """Print outstanding principal, next installment and progress."""
    loan_status = derive_status(schedule)
    if as_json:
        _echo_json(status_to_dict(loan_status))
    else:
        print_status(loan_status)
        print_warnings(schedule_warnings(schedule))


@cli.command()
@loan_options
@click.option("--today", "today", help="Reference date (YYYY-MM-DD); defaults to the current date")
@click.option("--grace-days", "grace_days", type=int, help="Days before the due date an installment becomes payable")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text")
def due(
    terms: LoanTerms,
    schedule: List[AmortizationEntry],
    defaults: CalculatorDefaults,
    today: Optional[str],
    grace_days: Optional[int],
    as_json: bool,
) -> None:
    """List overdue and soon-due installments."""
    reference = _date(today, "--today") if today else date.today()
    grace = defaults.grace_days_before_due if grace_days is None else grace_days
    result = classify(schedule, reference, grace)
    if as_json:
        _echo_json(classification_to_dict(result))
    else:
        print_due(result)


def split_options(func: Callable) -> Callable:
    """Attach ownership and rate options shared by ``split`` and ``report``."""
    func = click.option("--partner-share", "partner_share", help="Partner share of the remainder (percent)")(func)
    func = click.option("--service-charge-rate", "service_charge_rate", help="Service charge on partner vehicles (percent)")(func)
    func = click.option("--tax-rate", "tax_rate", help="Tax on profit (percent)")(func)
    func = click.option(
        "--ownership",
        "ownership",
        type=click.Choice(list(OWNERSHIP_TYPES)),
        default="partner",
        show_default=True,
        help="Who owns the vehicle",
    )(func)
    return func


def _resolve_rates(
    defaults: CalculatorDefaults,
    tax_rate: Optional[str],
    service_charge_rate: Optional[str],
    partner_share: Optional[str],
) -> Tuple[Any, Any, Any]:
    return (
        _rate(tax_rate, defaults.tax_rate_percent, "--tax-rate"),
        _rate(service_charge_rate, defaults.service_charge_rate_percent, "--service-charge-rate"),
        _rate(partner_share, defaults.partner_share_percent, "--partner-share"),
    )


@cli.command()
@click.option("--revenue", "revenue", required=True, help="Rent collected in the period")
@click.option("--expenses", "expenses", default="0", show_default=True, help="Approved expenses in the period")
@split_options
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text")
def split(
    revenue: str,
    expenses: str,
    ownership: str,
    tax_rate: Optional[str],
    service_charge_rate: Optional[str],
    partner_share: Optional[str],
    as_json: bool,
) -> None:
    """Compute tax, service charge and partner/owner shares for a period."""
    tax, service, partner = _resolve_rates(_defaults(), tax_rate, service_charge_rate, partner_share)
    period = PeriodFinancials(
        revenue=_amount(revenue, "--revenue"),
        expenses=_amount(expenses, "--expenses"),
        ownership_type=ownership,
        tax_rate_percent=tax,
        service_charge_rate_percent=service,
        partner_share_percent=partner,
    )
    try:
        result = compute_split(period)
    except ValidationError as exc:
        raise click.BadParameter(str(exc))
    if as_json:
        _echo_json(split_to_dict(result))
    else:
        print_split(result, ownership)


@cli.command()
@click.option("--payments", "payments_path", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Rent payments CSV")
@click.option("--expenses", "expenses_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Expenses CSV")
@click.option("--vehicle", "vehicle_id", required=True, help="Vehicle id to report on")
@click.option("--year", "year", required=True, type=int, help="Report year")
@click.option("--period", "period", type=click.Choice(list(PERIODS)), default="month", show_default=True, help="Report period")
@click.option("--month", "month", type=int, help="Month number for monthly reports")
@click.option("--quarter", "quarter", type=int, help="Quarter number for quarterly reports")
@split_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def report(
    payments_path: Path,
    expenses_path: Optional[Path],
    vehicle_id: str,
    year: int,
    period: str,
    month: Optional[int],
    quarter: Optional[int],
    ownership: str,
    tax_rate: Optional[str],
    service_charge_rate: Optional[str],
    partner_share: Optional[str],
    output: Optional[str],
) -> None:
    """Build a month-by-month profit split report for one vehicle."""
    tax, service, partner = _resolve_rates(_defaults(), tax_rate, service_charge_rate, partner_share)
    try:
        months = reporting_months(year, period, month, quarter)
        payments = load_rent_payments_csv(payments_path)
        expenses = load_expenses_csv(expenses_path) if expenses_path else []
        rows = monthly_report(payments, expenses, vehicle_id, months, ownership, tax, service, partner)
    except ValidationError as exc:
        raise click.BadParameter(str(exc))
    totals = report_totals(rows)
    logger.info("Report for %s covers %d month(s)", vehicle_id, len(rows))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Report export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump(
                {
                    "vehicle_id": vehicle_id,
                    "rows": [report_row_to_dict(r) for r in rows],
                    "totals": {k: str(v) for k, v in totals.items()},
                },
                f,
                indent=2,
            )
        click.echo(f"Report exported to {path}")
    else:
        print_report(rows, totals)


@cli.command()
@click.option("--start", "start", required=True, help="Assignment start date (YYYY-MM-DD)")
@click.option("--weekly-rent", "weekly_rent", required=True, help="Rent per week")
@click.option("--paid-week", "paid_week", multiple=True, help="Start date of a collected rent week (YYYY-MM-DD)")
@click.option("--today", "today", help="Reference date (YYYY-MM-DD); defaults to the current date")
@click.option("--agreement-months", "agreement_months", type=int, help="Agreement duration in months")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of text")
def rent(
    start: str,
    weekly_rent: str,
    paid_week: Tuple[str, ...],
    today: Optional[str],
    agreement_months: Optional[int],
    as_json: bool,
) -> None:
    """List uncollected rent weeks of a driver assignment."""
    defaults = _defaults()
    reference = _date(today, "--today") if today else date.today()
    paid = [_date(p, "--paid-week") for p in paid_week]
    try:
        summary = rent_due_summary(
            _date(start, "--start"),
            _amount(weekly_rent, "--weekly-rent"),
            paid,
            reference,
            agreement_months=defaults.default_agreement_months if agreement_months is None else agreement_months,
            horizon_weeks=defaults.rent_weeks_horizon,
        )
    except ValidationError as exc:
        raise click.BadParameter(str(exc))
    if as_json:
        _echo_json(rent_summary_to_dict(summary))
    else:
        print_rent_summary(summary)


if __name__ == "__main__":
    cli()
