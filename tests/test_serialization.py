from datetime import date
from decimal import Decimal

import pytest

from fleet_calc.engine import classify, generate_schedule
from fleet_calc.exceptions import ValidationError
from fleet_calc.serialization import (
    classification_to_dict,
    entry_from_dict,
    entry_to_dict,
    load_expenses_csv,
    load_rent_payments_csv,
    period_from_dict,
    terms_from_dict,
    terms_to_dict,
)


def test_stored_schedule_keeps_exact_amounts(car_loan):
    """Money goes out as strings, so a reloaded entry is identical."""
    entry = generate_schedule(car_loan)[1]
    data = entry_to_dict(entry)

    assert data["interest_portion"] == "921.15"
    assert data["due_date"] == "2024-02-01"
    assert data["paid_date"] is None
    assert entry_from_dict(data) == entry


def test_terms_from_dict_accepts_numbers(car_loan):
    terms = terms_from_dict(
        {
            "principal": 100000,
            "annual_rate_percent": "12",
            "tenure_months": "12",
            "monthly_installment": 8885,
            "first_installment_date": "2024-01-01",
        }
    )

    assert terms == car_loan
    assert terms_to_dict(terms)["principal"] == "100000"


@pytest.mark.parametrize(
    "data",
    [
        {"principal": "1", "annual_rate_percent": "1", "tenure_months": 1, "monthly_installment": "1"},
        {
            "principal": "1",
            "annual_rate_percent": "1",
            "tenure_months": "twelve",
            "monthly_installment": "1",
            "first_installment_date": "2024-01-01",
        },
    ],
)
def test_terms_from_dict_rejects_bad_input(data):
    with pytest.raises(ValidationError):
        terms_from_dict(data)


def test_classification_to_dict(car_loan):
    data = classification_to_dict(classify(generate_schedule(car_loan), date(2024, 1, 30)))

    assert data["overdue"][0]["month"] == 1
    assert data["overdue"][0]["days_past_due"] == 29
    assert data["due_soon"][0]["days_until_due"] == 2
    assert data["total_due"] == "17770.00"


def test_period_from_dict_fills_defaults():
    period = period_from_dict(
        {"revenue": "50000", "expenses": 20000, "ownership_type": "Partner"},
        {"tax_rate_percent": Decimal("4"), "service_charge_rate_percent": Decimal("10")},
    )

    assert period.ownership_type == "partner"
    assert period.tax_rate_percent == Decimal("4")
    assert period.partner_share_percent == 0


def test_load_rent_payments_csv(tmp_path):
    path = tmp_path / "rent.csv"
    path.write_text(
        "vehicle_id,amount,paid_on,status\n"
        "v1,5000,2024-01-03,paid\n"
        "v1,5000,2024-01-10,\n"
        "v2,4000,2024-01-10,Pending\n",
        encoding="utf-8",
    )

    payments = load_rent_payments_csv(path)

    assert [p.status for p in payments] == ["paid", "paid", "pending"]
    assert payments[0].amount == Decimal("5000")
    assert payments[1].paid_on == date(2024, 1, 10)


def test_load_expenses_csv_requires_columns(tmp_path):
    path = tmp_path / "expenses.csv"
    path.write_text("vehicle_id,amount\nv1,100\n", encoding="utf-8")

    with pytest.raises(ValidationError, match="incurred_on"):
        load_expenses_csv(path)
