from __future__ import annotations

from decimal import Decimal
from typing import List, Tuple

import pandas as pd
import pytest

from rates.history import RateRecord, RateTable


# (effective date, fixed rate, semiannual inflation rate) as published by TreasuryDirect
RATE_ROWS: List[Tuple[str, str, str]] = [
    ("2014-11-01", "0.0000", "0.0074"),
    ("2015-05-01", "0.0000", "-0.0080"),
    ("2015-11-01", "0.0010", "0.0077"),
    ("2016-05-01", "0.0010", "0.0014"),
    ("2016-11-01", "0.0000", "0.0138"),
    ("2017-05-01", "0.0000", "0.0098"),
    ("2017-11-01", "0.0010", "0.0124"),
    ("2018-05-01", "0.0030", "0.0116"),
    ("2018-11-01", "0.0050", "0.0116"),
    ("2019-05-01", "0.0050", "0.0070"),
    ("2019-11-01", "0.0020", "0.0101"),
    ("2020-05-01", "0.0000", "0.0053"),
    ("2020-11-01", "0.0000", "0.0084"),
    ("2021-05-01", "0.0000", "0.0177"),
    ("2021-11-01", "0.0000", "0.0356"),
    ("2022-05-01", "0.0000", "0.0481"),
    ("2022-11-01", "0.0040", "0.0324"),
    ("2023-05-01", "0.0090", "0.0169"),
    ("2023-11-01", "0.0130", "0.0197"),
    ("2024-05-01", "0.0130", "0.0148"),
    ("2024-11-01", "0.0120", "0.0095"),
    ("2025-05-01", "0.0110", "0.0143"),
]

HEADERS = {
    "inflation_rate": "Semiannual Inflation Rate",
    "fixed_rate": "Fixed Rate",
    "effective_date": "Effective Date",
}


def make_table(rows: List[Tuple[str, str, str]] = RATE_ROWS) -> RateTable:
    return RateTable.from_records(
        RateRecord(inflation_rate=Decimal(i), fixed_rate=Decimal(f), effective_month=pd.Period(d[:7], freq="M"))
        for d, f, i in rows
    )


def rates_frame(rows: List[Tuple[str, str, str]] = RATE_ROWS) -> pd.DataFrame:
    return pd.DataFrame(
        {
            HEADERS["effective_date"]: [d for d, _, _ in rows],
            HEADERS["fixed_rate"]: [f for _, f, _ in rows],
            HEADERS["inflation_rate"]: [i for _, _, i in rows],
        }
    )


@pytest.fixture
def rate_table() -> RateTable:
    return make_table()
