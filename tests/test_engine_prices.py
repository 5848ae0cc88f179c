from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List

import pandas as pd
import pytest

from core.errors import NoRatesKnownError
from engine.accrual import DECIMAL64, monthly_rate
from engine.project import ValuationEngine, forfeit_early_prices
from engine.records import PriceRec, prices_to_frame
from rates.history import RateTable


def test_price_curve_shape(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    prices = engine.price_curve("IBond202312")

    # four epochs walked plus the closing point
    assert len(prices) == 25
    assert prices[0].date == date(2023, 12, 1)
    assert prices[-1].date == date(2025, 12, 1)
    assert [p.date.month for p in prices[:3]] == [12, 1, 2]


def test_price_curve_hides_three_months_of_growth(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    prices = engine.price_curve("IBond202312")

    assert [p.share_price for p in prices[:4]] == [Decimal("1.00")] * 4
    assert prices[4].share_price == DECIMAL64.multiply(Decimal("1.00"), 1 + monthly_rate(Decimal("0.0527")))
    # first epoch boundary: par grown by half the 5.27% annual rate
    assert prices[9].share_price == Decimal("1.02635")
    # second boundary, three months on: grown again by half of 4.28%
    assert prices[15].share_price == Decimal("1.04831389")


def test_prices_never_decrease(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    for ticker in ("IBond201501", "IBond202001", "IBond202312"):
        prices = engine.price_curve(ticker)
        values = [p.share_price for p in prices]
        assert values == sorted(values)
        assert all(a.date < b.date for a, b in zip(prices, prices[1:]))


def test_zero_composite_epoch_holds_price_flat(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    prices = engine.price_curve("IBond201501")
    by_date = {p.date: p.share_price for p in prices}
    # 2015-07..2015-12 earn nothing; three months later the rewritten prices stall too
    flat = [by_date[date(2015, m, 1)] for m in range(10, 13)] + [by_date[date(2016, m, 1)] for m in range(1, 4)]
    assert len(set(flat)) == 1


def test_bond_issued_after_newest_rate_only_has_par(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    prices = engine.price_curve("IBond202701")
    assert [(p.date, p.share_price) for p in prices] == [(date(2027, 1, 1), Decimal("1.00"))]


def test_price_curve_is_repeatable(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    # crosses its fifth anniversary, so the forfeiture rewrite runs on both calls
    first = engine.price_curve("IBond201501")
    second = engine.price_curve("IBond201501")
    assert [(p.date, p.share_price) for p in first] == [(p.date, p.share_price) for p in second]
    assert first is not second


def test_price_curve_rate_messages(rate_table: RateTable) -> None:
    messages: List[str] = []
    engine = ValuationEngine(rate_table=rate_table)
    engine.price_curve("IBond202312", on_rate=messages.append)
    assert messages == [
        "For I bonds issued 2023-12, starting 2023-12 composite rate is 5.27%",
        "For I bonds issued 2023-12, starting 2024-06 composite rate is 4.28%",
        "For I bonds issued 2023-12, starting 2024-12 composite rate is 3.21%",
        "For I bonds issued 2023-12, starting 2025-06 composite rate is 4.18%",
    ]


def test_price_curve_before_known_rates(rate_table: RateTable) -> None:
    engine = ValuationEngine(rate_table=rate_table)
    with pytest.raises(NoRatesKnownError):
        engine.price_curve("IBond201001")


def test_forfeit_rewrites_only_before_anniversary() -> None:
    dates = [date(2019, m, 1) for m in range(8, 13)] + [date(2020, m, 1) for m in range(1, 4)]
    prices = [PriceRec(Decimal(i + 1), d) for i, d in enumerate(dates)]
    forfeit_early_prices(pd.Period("2015-01", freq="M"), prices)
    assert [int(p.share_price) for p in prices] == [1, 1, 1, 1, 2, 6, 7, 8]


def test_prices_frame() -> None:
    df = prices_to_frame([PriceRec(Decimal("1.00"), date(2024, 1, 1)), PriceRec(Decimal("1.0044"), date(2024, 2, 1))])
    assert list(df.columns) == ["date", "share_price"]
    assert df["share_price"].tolist() == ["1.00", "1.0044"]
