from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import pandas as pd

from .accrual import DECIMAL64


@dataclass
class BalanceRec:
    """Running balances of one bond holding during a transaction-mode walk.

    total_bal is the full value (principal, credited interest and external
    changes); eligible_bal is the part currently earning interest.
    """

    total_bal: Decimal
    eligible_bal: Decimal
    month: pd.Period

    def start_epoch(self) -> None:
        # interest credited during the last epoch starts earning now
        self.eligible_bal = self.total_bal

    def apply_month(self, interest: Decimal, change: Decimal) -> None:
        """Credit one month's interest, fold in the external change, advance a month.

        A redemption removes the same share of eligible balance as of total
        balance. With a zero starting balance the shrink is skipped.
        """
        starting_bal = self.total_bal + interest
        if starting_bal != 0 and change != 0:
            ratio = Decimal(1) + DECIMAL64.divide(change, starting_bal)
            self.eligible_bal = max(Decimal(0), DECIMAL64.multiply(self.eligible_bal, ratio))
        self.total_bal = starting_bal + change
        self.month = self.month + 1
