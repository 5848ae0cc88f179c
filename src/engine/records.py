from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Callable, Dict, Iterator, List, Optional

import pandas as pd

from core.dates import first_day


@dataclass
class CalcTxn:
    """Calculated interest payment for one month of one holding.

    accrual_month is when the interest was credited to the bond; pay_month
    can be later when the payment is deferred in the bond's early years.
    """

    pay_month: pd.Period
    pay_amount: Decimal
    memo: str
    accrual_month: pd.Period
    ending_bal: Decimal = field(default=Decimal(0))

    @property
    def pay_date(self) -> date:
        return first_day(self.pay_month)

    def set_ending_bal(self, ending_bal: Decimal) -> None:
        self.ending_bal = ending_bal

    def __str__(self) -> str:
        return f"{self.pay_date} pay {self.pay_amount} for {self.memo}"


class CalcTxnList:
    """Calculated interest payments indexed by pay month.

    A month can hold more than one payment: deferred payments from the months
    before the fifth anniversary all land in the anniversary month.
    """

    def __init__(self) -> None:
        self._by_month: Dict[pd.Period, List[CalcTxn]] = {}

    def add(self, txn: CalcTxn) -> None:
        self._by_month.setdefault(txn.pay_month, []).append(txn)

    def get_for_month(self, month: pd.Period) -> List[CalcTxn]:
        return list(self._by_month.get(month, []))

    def months(self) -> List[pd.Period]:
        return sorted(self._by_month)

    def last_month(self) -> Optional[pd.Period]:
        return max(self._by_month) if self._by_month else None

    def tail_keys(self, from_month: pd.Period) -> List[pd.Period]:
        """Months we hold that follow from_month, in order."""
        return [m for m in self.months() if m > from_month]

    def __iter__(self) -> Iterator[CalcTxn]:
        for month in self.months():
            yield from self._by_month[month]

    def __len__(self) -> int:
        return sum(len(txns) for txns in self._by_month.values())

    def remove_if(self, predicate: Callable[[CalcTxn], bool]) -> int:
        """Drop transactions matching predicate; returns how many were removed."""
        removed = 0
        for month in list(self._by_month):
            kept = [t for t in self._by_month[month] if not predicate(t)]
            removed += len(self._by_month[month]) - len(kept)
            if kept:
                self._by_month[month] = kept
            else:
                del self._by_month[month]
        return removed

    def discard_after(self, month: pd.Period) -> int:
        """Drop payments that would land after month; they haven't vested yet."""
        return self.remove_if(lambda t: t.pay_month > month)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {
                "pay_date": t.pay_date,
                "pay_amount": str(t.pay_amount),
                "memo": t.memo,
                "accrual_month": str(t.accrual_month),
                "ending_bal": str(t.ending_bal),
            }
            for t in self
        ]
        return pd.DataFrame(rows, columns=["pay_date", "pay_amount", "memo", "accrual_month", "ending_bal"])


@dataclass
class PriceRec:
    """Per-share price of a bond on a date; 1.00 at issue."""

    share_price: Decimal
    date: date


def prices_to_frame(prices: List[PriceRec]) -> pd.DataFrame:
    df = pd.DataFrame({"date": [p.date for p in prices], "share_price": [str(p.share_price) for p in prices]})
    return df
