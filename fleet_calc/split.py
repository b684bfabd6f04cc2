"""Profit split for a vehicle over a reporting period.

Profit flows through a fixed cascade of deductions: tax first, then, for
partner-owned vehicles, the fleet owner's service charge, and finally the
partner/owner split of what is left. Company-owned vehicles skip the service
charge and partner split and keep everything after tax. A deduction is only
taken while the running remainder is positive, so a loss never produces
negative taxes or shares.
"""

from __future__ import annotations

from decimal import Decimal

from .data_models import OWNERSHIP_PARTNER, OWNERSHIP_TYPES, FinancialSplit, PeriodFinancials
from .exceptions import ValidationError
from .utils import ZERO, round_money

HUNDRED = Decimal(100)


def validate_period(period: PeriodFinancials) -> None:
    for name in ("revenue", "expenses", "tax_rate_percent", "service_charge_rate_percent", "partner_share_percent"):
        if not Decimal(getattr(period, name)).is_finite():
            raise ValidationError(f"{name} must be a finite number")
    if period.revenue < 0:
        raise ValidationError("Revenue cannot be negative")
    if period.expenses < 0:
        raise ValidationError("Expenses cannot be negative")
    if period.ownership_type not in OWNERSHIP_TYPES:
        raise ValidationError(
            f"Ownership type must be one of {', '.join(OWNERSHIP_TYPES)}; got {period.ownership_type!r}"
        )
    for name in ("tax_rate_percent", "service_charge_rate_percent", "partner_share_percent"):
        value = getattr(period, name)
        if value < 0 or value > HUNDRED:
            raise ValidationError(f"{name} must be between 0 and 100; got {value}")


def compute_split(period: PeriodFinancials) -> FinancialSplit:
    """Run the deduction cascade for one period.

    The owner's part of a partner vehicle is computed with the complement of
    the partner percentage rather than by subtracting the partner share, so
    both halves are rounded independently from the same remainder.

    Raises
    ------
    ValidationError
        If the period carries negative amounts, rates outside 0-100 or an
        unknown ownership type.
    """
    validate_period(period)

    profit = period.revenue - period.expenses
    tax = profit * period.tax_rate_percent / HUNDRED if profit > 0 else ZERO

    if period.ownership_type == OWNERSHIP_PARTNER:
        service_charge = profit * period.service_charge_rate_percent / HUNDRED if profit > 0 else ZERO
        remainder = profit - tax - service_charge
        partner_fraction = period.partner_share_percent / HUNDRED
        if remainder > 0:
            partner_share = remainder * partner_fraction
            owner_share = remainder * (1 - partner_fraction)
        else:
            partner_share = owner_share = ZERO
        owner_full_share = ZERO
    else:
        service_charge = partner_share = owner_share = ZERO
        remainder = profit - tax
        owner_full_share = remainder if remainder > 0 else ZERO

    return FinancialSplit(
        profit=round_money(profit),
        tax=round_money(tax),
        service_charge=round_money(service_charge),
        remainder=round_money(remainder) if remainder > 0 else round_money(ZERO),
        partner_share=round_money(partner_share),
        owner_share=round_money(owner_share),
        owner_full_share=round_money(owner_full_share),
    )
