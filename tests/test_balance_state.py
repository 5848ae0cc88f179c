from __future__ import annotations

from decimal import Decimal

import pandas as pd

from engine.state import BalanceRec


def test_zero_cash_flow_keeps_eligible_equal_total_at_epoch_boundaries() -> None:
    bal = BalanceRec(total_bal=Decimal("1000.00"), eligible_bal=Decimal("1000.00"), month=pd.Period("2023-12", freq="M"))
    for _ in range(3):
        bal.start_epoch()
        assert bal.eligible_bal == bal.total_bal
        start_total = bal.total_bal
        for _ in range(6):
            bal.apply_month(Decimal("4.39"), Decimal(0))
            # credited interest waits for the next epoch
            assert bal.eligible_bal == start_total
        assert bal.total_bal == start_total + Decimal("26.34")
    assert bal.month == pd.Period("2025-06", freq="M")


def test_partial_redemption_shrinks_eligible_proportionally() -> None:
    bal = BalanceRec(total_bal=Decimal("1000.00"), eligible_bal=Decimal("1000.00"), month=pd.Period("2024-01", freq="M"))
    bal.apply_month(Decimal("5.00"), Decimal("-502.50"))
    assert bal.eligible_bal == Decimal("500")
    assert bal.total_bal == Decimal("502.50")
    assert bal.month == pd.Period("2024-02", freq="M")


def test_deposit_grows_eligible_proportionally() -> None:
    bal = BalanceRec(total_bal=Decimal("1000.00"), eligible_bal=Decimal("1000.00"), month=pd.Period("2024-01", freq="M"))
    bal.apply_month(Decimal("0.00"), Decimal("500.00"))
    assert bal.eligible_bal == Decimal("1500")
    assert bal.total_bal == Decimal("1500.00")


def test_full_redemption_then_zero_balance_months() -> None:
    bal = BalanceRec(total_bal=Decimal("1000.00"), eligible_bal=Decimal("1000.00"), month=pd.Period("2024-01", freq="M"))
    bal.apply_month(Decimal("4.00"), Decimal("-1004.00"))
    assert bal.eligible_bal == 0
    assert bal.total_bal == 0
    # starting balance is zero now; the proportional shrink must not divide by it
    bal.apply_month(Decimal("0.00"), Decimal("0"))
    bal.apply_month(Decimal("0.00"), Decimal("25.00"))
    assert bal.eligible_bal == 0
    assert bal.total_bal == Decimal("25.00")
    bal.start_epoch()
    assert bal.eligible_bal == Decimal("25.00")


def test_over_redemption_never_makes_eligible_negative() -> None:
    bal = BalanceRec(total_bal=Decimal("100.00"), eligible_bal=Decimal("100.00"), month=pd.Period("2024-01", freq="M"))
    bal.apply_month(Decimal("0.00"), Decimal("-150.00"))
    assert bal.eligible_bal == 0
