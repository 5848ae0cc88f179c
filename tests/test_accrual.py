from __future__ import annotations

from decimal import Decimal

import pytest

from engine.accrual import DECIMAL64, compose_rate, format_rate_pct, monthly_interest, monthly_rate


@pytest.mark.parametrize(
    "fixed, inflation, expected",
    [
        ("0", "0", "0.0000"),
        ("0.0130", "0.0197", "0.0527"),
        ("0.0040", "0.0324", "0.0689"),
        ("0.0090", "0.0169", "0.0430"),
        ("0.0000", "0.0481", "0.0962"),
        ("0.0000", "-0.0080", "0.0000"),
        ("0.0100", "-0.0200", "0.0000"),
    ],
)
def test_compose_rate_known_values(fixed: str, inflation: str, expected: str) -> None:
    rate = compose_rate(Decimal(fixed), Decimal(inflation))
    assert rate == Decimal(expected)
    assert rate.as_tuple().exponent == -4


def test_compose_rate_is_never_negative_on_a_grid() -> None:
    fixed_values = [Decimal(f) / 10000 for f in range(0, 400, 35)]
    inflation_values = [Decimal(i) / 10000 for i in range(-300, 600, 45)]
    for f in fixed_values:
        for i in inflation_values:
            rate = compose_rate(f, i)
            assert rate >= 0
            assert rate.as_tuple().exponent == -4


def test_compose_rate_accepts_floats_and_zero_inputs() -> None:
    assert compose_rate(0.013, 0.0197) == Decimal("0.0527")
    assert compose_rate(0, 0) == 0


def test_compose_rate_rounds_half_even() -> None:
    # (0 + 2) * 0.000025 + 0 = 0.00005 -> 0.0000 (tie to even)
    assert compose_rate(Decimal("0"), Decimal("0.000025")) == Decimal("0.0000")
    # 0.00015 -> 0.0002
    assert compose_rate(Decimal("0"), Decimal("0.000075")) == Decimal("0.0002")


def test_monthly_interest_cents_half_even() -> None:
    rate = monthly_rate(Decimal("0.0527"))
    assert rate == DECIMAL64.divide(Decimal("0.0527"), Decimal(12))
    assert monthly_interest(Decimal("10000"), rate) == Decimal("43.92")
    assert monthly_interest(Decimal("1"), Decimal("0.125")) == Decimal("0.12")
    assert monthly_interest(Decimal("1"), Decimal("0.135")) == Decimal("0.14")
    assert monthly_interest(Decimal("0"), rate) == Decimal("0.00")


def test_format_rate_pct() -> None:
    assert format_rate_pct(Decimal("0.0527")) == "5.27"
    assert format_rate_pct(Decimal("0.0430")) == "4.30"
