from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

import logging

import pandas as pd

from core.dates import DateLike, last_day
from core.errors import BondInputError
from core.types import INTEREST_PAYEE, INTEREST_TXN_TYPE, MessageSink
from engine.project import ValuationEngine
from engine.records import CalcTxn
from rates.ticker import is_ibond_ticker
from .cashflows import InvestTxnList, Ledger


logger = logging.getLogger("run")


@dataclass
class StagedInterest:
    """A calculated interest payment missing from the ledger."""

    account: str
    ticker: str
    txn: CalcTxn


@dataclass
class RefreshResult:
    staged: List[StagedInterest] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)
    have_ibonds: bool = False

    @property
    def is_modified(self) -> bool:
        return bool(self.staged)

    def commit_summary(self) -> str:
        n = len(self.staged)
        return f"Recorded {n} interest payment transaction{'' if n == 1 else 's'}"

    def to_frame(self) -> pd.DataFrame:
        """Staged payments shaped like ledger rows."""
        rows = [
            {
                "date": s.txn.pay_date,
                "account": s.account,
                "ticker": s.ticker,
                "txn_type": INTEREST_TXN_TYPE,
                "amount": str(s.txn.pay_amount),
                "memo": s.txn.memo,
                "payee": INTEREST_PAYEE,
                "ending_bal": str(s.txn.ending_bal),
            }
            for s in self.staged
        ]
        return pd.DataFrame(rows, columns=["date", "account", "ticker", "txn_type", "amount", "memo", "payee", "ending_bal"])


def _display(result: RefreshResult, sink: Optional[MessageSink], message: str) -> None:
    result.messages.append(message)
    logger.info("MESSAGE %s", message)
    if sink is not None:
        sink(message)


def store_interest_if_diff(
    txn: CalcTxn,
    txn_list: InvestTxnList,
    result: RefreshResult,
    sink: Optional[MessageSink] = None,
) -> None:
    """Stage txn when the ledger lacks it; otherwise report amount or balance differences."""
    where = f"{txn_list.account}:{txn_list.ticker}"
    existing = txn_list.matching_interest_txn(txn)

    if existing is None:
        _display(result, sink, f"On {txn.pay_date} {where} pay {txn.pay_amount} for {txn.memo}, bal {txn.ending_bal:.2f}")
        result.staged.append(StagedInterest(txn_list.account, txn_list.ticker, txn))
        return

    old_amount: Decimal = existing["amount"]
    if txn.pay_amount != old_amount:
        _display(
            result,
            sink,
            f"Found a different interest amount on {txn.pay_date} {where}: have {old_amount}, calculate {txn.pay_amount} for {txn.memo}",
        )
    old_bal = txn_list.balance_as_of(txn.pay_month)
    if txn.ending_bal != old_bal:
        _display(
            result,
            sink,
            f"Found a different ending balance for {txn.pay_month} in {where}: have {old_bal}, calculate {txn.ending_bal}",
        )


def refresh_interest(
    engine: ValuationEngine,
    ledger: Ledger,
    *,
    today: DateLike | None = None,
    on_message: Optional[MessageSink] = None,
    on_rate: Optional[MessageSink] = None,
) -> RefreshResult:
    """
    Calculate interest for every I bond holding in the ledger and stage what is missing.

    Holdings count when their balance at the end of the issue month is
    positive. Problems with one bond (bad ticker, issue month before any
    known rate) are reported and the remaining bonds are still processed.
    """
    result = RefreshResult()
    prefix = engine.ticker_prefix
    rate_sink = on_rate if on_rate is not None else logger.debug

    for ticker in ledger.tickers():
        if not is_ibond_ticker(ticker, prefix):
            continue
        try:
            issue = engine.issue_month(ticker)
            for account in ledger.accounts_for(ticker):
                txn_list = ledger.txn_list(account, ticker)
                if txn_list.balance_as_of(issue) <= 0:
                    logger.debug("SKIP %s:%s no balance at end of %s", account, ticker, last_day(issue))
                    continue
                txns = engine.interest_txns(ticker, txn_list.change_for_month, today=today, on_rate=rate_sink)
                # rates were shown for the first holding already
                rate_sink = _silent
                logger.debug("CALC %s:%s txns=%d", account, ticker, len(txns))
                for txn in txns:
                    store_interest_if_diff(txn, txn_list, result, on_message)
                result.have_ibonds = True
        except BondInputError as exc:
            _display(result, on_message, str(exc))
        finally:
            rate_sink = on_rate if on_rate is not None else logger.debug

    if not result.have_ibonds:
        _display(
            result,
            on_message,
            f"Unable to locate any security with an I bond ticker symbol. Such ticker symbols should start with "
            f"'{prefix}' (in any case) followed by the year and a 2 digit month number in the format {prefix}YYYYMM. "
            f"Examples: {prefix}201901, {prefix.upper()}202212, {prefix.lower()}202304",
        )
    elif not result.is_modified:
        _display(result, on_message, "No new interest payment data found")
    return result


def _silent(message: str) -> None:
    return None
