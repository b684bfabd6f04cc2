from datetime import date, datetime
from decimal import Decimal

import pytest

from fleet_calc.config import CalculatorDefaults, load_defaults
from fleet_calc.exceptions import ValidationError
from fleet_calc.utils import (
    add_months,
    month_end,
    months_between_inclusive,
    parse_amount,
    parse_date,
    round_money,
    to_decimal,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("500000", Decimal("500000")),
        ("5,00,000", Decimal("500000")),
        ("5l", Decimal("500000")),
        ("1.5k", Decimal("1500")),
        ("2M", Decimal("2000000")),
        ("8_885", Decimal("8885")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "5x", "k", "nan", "NaN", "inf", "-Infinity"])
def test_parse_amount_rejects_garbage(text):
    with pytest.raises(ValidationError):
        parse_amount(text)


def test_round_money_rounds_halves_up():
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("-2.345")) == Decimal("-2.35")
    assert str(round_money(Decimal("7"))) == "7.00"


def test_to_decimal():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.5") == Decimal("12.5")
    with pytest.raises(ValidationError):
        to_decimal("twelve")


@pytest.mark.parametrize("value", ["NaN", "Infinity", "-inf", Decimal("NaN"), Decimal("Infinity"), float("nan")])
def test_to_decimal_rejects_non_finite(value):
    with pytest.raises(ValidationError):
        to_decimal(value)


def test_parse_date_variants():
    assert parse_date("2024-01-05") == date(2024, 1, 5)
    assert parse_date("2024-01-05T10:30:00") == date(2024, 1, 5)
    assert parse_date(datetime(2024, 1, 5, 10, 30)) == date(2024, 1, 5)
    assert parse_date(date(2024, 1, 5)) == date(2024, 1, 5)
    with pytest.raises(ValidationError):
        parse_date("05/01/2024")
    with pytest.raises(ValidationError):
        parse_date(None)


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_month_helpers():
    assert month_end(2024, 2) == date(2024, 2, 29)
    assert month_end(2024, 12) == date(2024, 12, 31)
    assert months_between_inclusive(date(2024, 1, 31), date(2024, 2, 1)) == 2
    assert months_between_inclusive(date(2024, 5, 1), date(2024, 2, 1)) == 0


def test_defaults_without_environment():
    assert load_defaults({}) == CalculatorDefaults()
    defaults = CalculatorDefaults()
    assert defaults.tax_rate_percent == Decimal("4")
    assert defaults.service_charge_rate_percent == Decimal("10")
    assert defaults.partner_share_percent == Decimal("50")
    assert defaults.grace_days_before_due == 3


def test_defaults_from_environment():
    defaults = load_defaults(
        {
            "FLEET_TAX_RATE_PERCENT": "5",
            "FLEET_GRACE_DAYS": "7",
            "FLEET_RENT_WEEKS_HORIZON": " ",
        }
    )

    assert defaults.tax_rate_percent == Decimal("5")
    assert defaults.grace_days_before_due == 7
    assert defaults.rent_weeks_horizon == 52


@pytest.mark.parametrize("name", ["FLEET_GRACE_DAYS", "FLEET_PARTNER_SHARE_PERCENT"])
def test_invalid_environment_value(name):
    with pytest.raises(ValidationError, match=name):
        load_defaults({name: "lots"})


@pytest.mark.parametrize("raw", ["NaN", "Infinity"])
def test_non_finite_environment_rate(raw):
    with pytest.raises(ValidationError, match="FLEET_TAX_RATE_PERCENT"):
        load_defaults({"FLEET_TAX_RATE_PERCENT": raw})
