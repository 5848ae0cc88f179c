from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional, Tuple

import logging

import pandas as pd

from core.dates import first_day, last_day
from core.errors import LedgerLoadError
from core.types import INTEREST_TXN_TYPE
from engine.accrual import CENTS
from engine.records import CalcTxn


REQUIRED_LEDGER_COLS: Tuple[str, str, str, str] = ("date", "ticker", "txn_type", "amount")
DEFAULT_ACCOUNT = "Investments"

logger = logging.getLogger("run")


def _to_amount(value: object) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise LedgerLoadError(f"Ledger amount is not a number: {value!r}") from exc
    if not amount.is_finite():
        raise LedgerLoadError(f"Ledger amount is not a number: {value!r}")
    return amount.quantize(CENTS)


def _normalize(df: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in REQUIRED_LEDGER_COLS if c not in df.columns]
    if missing:
        raise LedgerLoadError(f"Ledger missing required columns: {missing}")
    out = df.copy()
    if "account" not in out.columns:
        out["account"] = DEFAULT_ACCOUNT
    if "memo" not in out.columns:
        out["memo"] = ""
    out["account"] = out["account"].fillna(DEFAULT_ACCOUNT).astype(str).str.strip()
    out["memo"] = out["memo"].fillna("").astype(str)
    out["ticker"] = out["ticker"].astype(str).str.strip()
    out["txn_type"] = out["txn_type"].astype(str).str.strip().str.upper()
    dates = pd.to_datetime(out["date"], errors="coerce")
    if dates.isna().any():
        bad = out.loc[dates.isna(), "date"].tolist()
        raise LedgerLoadError(f"Ledger has unparseable dates: {bad[:5]}")
    out["date"] = dates.dt.date
    out["amount"] = [_to_amount(v) for v in out["amount"]]
    # stable sort keeps same-day entries in file order
    return out.sort_values("date", kind="mergesort").reset_index(drop=True)


class InvestTxnList:
    """Ledger rows of one bond holding (one ticker in one account)."""

    def __init__(self, frame: pd.DataFrame, account: str, ticker: str) -> None:
        self.account = account
        self.ticker = ticker
        mask = (frame["account"] == account) & (frame["ticker"].str.lower() == ticker.lower())
        self._df = frame.loc[mask].reset_index(drop=True)

    def __len__(self) -> int:
        return len(self._df)

    def _in_month(self, month: pd.Period) -> pd.DataFrame:
        start, end = first_day(month), last_day(month)
        return self._df[(self._df["date"] >= start) & (self._df["date"] <= end)]

    def change_for_month(self, month: pd.Period) -> Decimal:
        """Net deposits and redemptions in month; interest reinvestments excluded."""
        rows = self._in_month(month)
        changes = rows[rows["txn_type"] != INTEREST_TXN_TYPE]
        total = sum(changes["amount"], Decimal(0))
        if len(changes):
            logger.debug(
                "From %s:%s add %s => %s for %s",
                self.account,
                self.ticker,
                "; ".join(f"{a} on {d}" for a, d in zip(changes["amount"], changes["date"])),
                total,
                month,
            )
        return total

    def balance_as_of(self, month: pd.Period) -> Decimal:
        """Holding balance at the end of month, interest included."""
        rows = self._df[self._df["date"] <= last_day(month)]
        return sum(rows["amount"], Decimal(0))

    def matching_interest_txn(self, txn: CalcTxn) -> Optional[pd.Series]:
        """First interest reinvestment on the payment date with the same memo (any case)."""
        rows = self._df[(self._df["date"] == txn.pay_date) & (self._df["txn_type"] == INTEREST_TXN_TYPE)]
        for _, row in rows.iterrows():
            if str(row["memo"]).strip().lower() == txn.memo.lower():
                return row
        return None


@dataclass
class Ledger:
    """Transactions of bond holdings across accounts.

    Amounts are signed dollars: purchases positive, redemptions negative,
    interest reinvestments positive with txn_type DIVIDEND_REINVEST.
    """

    frame: pd.DataFrame

    def __post_init__(self) -> None:
        self.frame = _normalize(self.frame)

    def tickers(self) -> List[str]:
        # first spelling seen wins for case variants
        seen = {}
        for t in self.frame["ticker"]:
            seen.setdefault(t.lower(), t)
        return sorted(seen.values(), key=str.lower)

    def accounts_for(self, ticker: str) -> List[str]:
        rows = self.frame[self.frame["ticker"].str.lower() == ticker.lower()]
        return sorted(rows["account"].unique().tolist())

    def txn_list(self, account: str, ticker: str) -> InvestTxnList:
        return InvestTxnList(self.frame, account, ticker)


def load_ledger_csv(path: str | Path) -> Ledger:
    p = Path(path)
    if not p.exists():
        raise LedgerLoadError(f"Ledger CSV not found: {p}")
    # amounts stay text so they convert to Decimal exactly
    df = pd.read_csv(p, dtype={"amount": str, "ticker": str, "account": str, "memo": str, "txn_type": str})
    return Ledger(df)
