from __future__ import annotations

from decimal import Context, Decimal, ROUND_HALF_EVEN

# 16 significant digits, half-even: the precision monthly rates and balance
# ratios are carried at
DECIMAL64 = Context(prec=16, rounding=ROUND_HALF_EVEN)

INTEREST_RATE_PLACES = Decimal("0.0001")
CENTS = Decimal("0.01")
MONTHS_PER_YEAR = Decimal(12)
SEMIANNUAL_MONTHS = 6


def _dec(value: object) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def compose_rate(fixed_rate: object, inflation_rate: object) -> Decimal:
    """
    Composite annual rate for a Series I bond.

    composite = (fixed + 2) * semiannual_inflation + fixed, floored at zero
    and rounded half-even to the fourth decimal place. See
    https://www.treasurydirect.gov/savings-bonds/i-bonds/i-bonds-interest-rates
    """
    fixed = _dec(fixed_rate)
    inflation = _dec(inflation_rate)
    composite = (fixed + 2) * inflation + fixed
    if composite < 0:
        composite = Decimal(0)
    return composite.quantize(INTEREST_RATE_PLACES, rounding=ROUND_HALF_EVEN)


def monthly_rate(composite_rate: Decimal) -> Decimal:
    return DECIMAL64.divide(composite_rate, MONTHS_PER_YEAR)


def monthly_interest(eligible_bal: Decimal, rate_per_month: Decimal) -> Decimal:
    """One month of straight-line interest on the eligible balance, in cents."""
    return (eligible_bal * rate_per_month).quantize(CENTS, rounding=ROUND_HALF_EVEN)


def format_rate_pct(rate: Decimal) -> str:
    """0.0527 -> '5.27'"""
    return str(rate.scaleb(2))
