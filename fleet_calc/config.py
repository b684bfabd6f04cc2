"""Default rates and thresholds for the calculator.

The pure functions never read these directly; the command line and the web
layer resolve them once and pass explicit values down. Each default can be
overridden through an environment variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Mapping, Optional

from .exceptions import ValidationError
from .utils import to_decimal

ENV_PREFIX = "FLEET_"

# field name -> environment variable suffix
_ENV_NAMES = {
    "tax_rate_percent": "TAX_RATE_PERCENT",
    "service_charge_rate_percent": "SERVICE_CHARGE_RATE_PERCENT",
    "partner_share_percent": "PARTNER_SHARE_PERCENT",
    "grace_days_before_due": "GRACE_DAYS",
    "synthetic_paid_offset_days": "SYNTHETIC_PAID_OFFSET_DAYS",
    "default_interest_rate_percent": "DEFAULT_INTEREST_RATE_PERCENT",
    "rent_weeks_horizon": "RENT_WEEKS_HORIZON",
    "default_agreement_months": "DEFAULT_AGREEMENT_MONTHS",
}


@dataclass(frozen=True)
class CalculatorDefaults:
    """Business defaults used when a vehicle record does not carry its own."""

    tax_rate_percent: Decimal = Decimal("4")
    service_charge_rate_percent: Decimal = Decimal("10")
    partner_share_percent: Decimal = Decimal("50")
    grace_days_before_due: int = 3
    synthetic_paid_offset_days: int = 3
    default_interest_rate_percent: Decimal = Decimal("8.5")
    rent_weeks_horizon: int = 52
    default_agreement_months: int = 12


def load_defaults(environ: Optional[Mapping[str, str]] = None) -> CalculatorDefaults:
    """Build ``CalculatorDefaults`` with overrides from ``environ``.

    ``environ`` defaults to ``os.environ``. Values that cannot be parsed raise
    ``ValidationError`` naming the offending variable.
    """
    if environ is None:
        environ = os.environ
    overrides = {}
    for field in fields(CalculatorDefaults):
        env_name = ENV_PREFIX + _ENV_NAMES[field.name]
        raw = environ.get(env_name)
        if raw is None or raw.strip() == "":
            continue
        try:
            if field.type in (int, "int"):
                overrides[field.name] = int(raw)
            else:
                overrides[field.name] = to_decimal(raw.strip())
        except (ValueError, ValidationError) as exc:
            raise ValidationError(f"Invalid value for {env_name}: {raw!r}") from exc
    return CalculatorDefaults(**overrides)
