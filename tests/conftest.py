from datetime import date
from decimal import Decimal

import pytest

from fleet_calc.data_models import LoanTerms


@pytest.fixture
def car_loan() -> LoanTerms:
    """100k at 12 % over 12 months with an EMI slightly above the annuity."""
    return LoanTerms(
        principal=Decimal("100000"),
        annual_rate_percent=Decimal("12"),
        tenure_months=12,
        monthly_installment=Decimal("8885"),
        first_installment_date=date(2024, 1, 1),
        paid_installments_count=0,
    )
