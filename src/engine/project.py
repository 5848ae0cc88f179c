from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterator, List, Optional, Tuple

import logging

import pandas as pd

from core.dates import DateLike, fifth_anniversary, first_day, month_label, month_range, this_month
from core.errors import NoRatesKnownError, RateNotFoundError
from core.types import CashFlowProvider, MessageSink
from rates.history import RateTable
from rates.ticker import DEFAULT_TICKER_PREFIX, parse_ticker
from .accrual import DECIMAL64, SEMIANNUAL_MONTHS, compose_rate, format_rate_pct, monthly_interest, monthly_rate
from .records import CalcTxn, CalcTxnList, PriceRec
from .state import BalanceRec


# Bonds redeemed before their fifth anniversary lose the last 3 months of interest
MONTHS_TO_LOSE = 3

logger = logging.getLogger("run")


def deferred_pay_month(accrual_month: pd.Period, anniversary: pd.Period) -> pd.Period:
    """Month an interest credit vests: 3 months later, capped at the anniversary."""
    if accrual_month < anniversary:
        return min(accrual_month + MONTHS_TO_LOSE, anniversary)
    return accrual_month


def _notify(sink: Optional[MessageSink], message: str) -> None:
    if sink is None:
        return
    try:
        sink(message)
    except Exception:
        logger.debug("RATE MESSAGE undelivered: %s", message, exc_info=True)


@dataclass
class ValuationEngine:
    """Series I bond valuation over a rate history.

    Two modes share one semiannual walk: price_curve() gives a per-share
    price series, interest_txns() gives monthly interest payments for a
    holding whose external deposits and redemptions come from a callable.
    """

    rate_table: RateTable
    on_rate: Optional[MessageSink] = None
    ticker_prefix: str = DEFAULT_TICKER_PREFIX

    def issue_month(self, ticker: str) -> pd.Period:
        return parse_ticker(ticker, self.ticker_prefix)

    def horizon(self) -> pd.Period:
        """First epoch start that is not walked: one epoch past the newest rate."""
        return self.rate_table.last_known_month() + SEMIANNUAL_MONTHS

    def _fixed_rate(self, issue_month: pd.Period, ticker: str) -> Decimal:
        try:
            return self.rate_table.rate_for(issue_month).fixed_rate
        except RateNotFoundError as exc:
            raise NoRatesKnownError(issue_month, ticker) from exc

    def _epochs(self, issue_month: pd.Period, fixed_rate: Decimal, sink: Optional[MessageSink]) -> Iterator[Tuple[pd.Period, Decimal]]:
        """Yield (epoch start, composite rate) from the issue month up to the horizon."""
        start = issue_month
        end = self.horizon()
        while start < end:
            inflation_rate = self.rate_table.rate_for(start).inflation_rate
            composite = compose_rate(fixed_rate, inflation_rate)
            _notify(sink, f"For I bonds issued {issue_month}, starting {start} composite rate is {format_rate_pct(composite)}%")
            yield start, composite
            start = start + SEMIANNUAL_MONTHS

    def price_curve(self, ticker: str, *, on_rate: Optional[MessageSink] = None) -> List[PriceRec]:
        """Monthly per-share prices from 1.00 at issue through one epoch past the newest rate."""
        issue = self.issue_month(ticker)
        fixed_rate = self._fixed_rate(issue, ticker)
        sink = on_rate if on_rate is not None else self.on_rate

        prices: List[PriceRec] = []
        base = Decimal("1.00")
        month = issue
        for start, composite in self._epochs(issue, fixed_rate, sink):
            per_month = monthly_rate(composite)
            for k in range(SEMIANNUAL_MONTHS):
                # straight line within the epoch; growth compounds only at its end
                price = base if k == 0 else DECIMAL64.multiply(base, 1 + per_month * k)
                prices.append(PriceRec(price, first_day(start + k)))
            base = DECIMAL64.multiply(base, 1 + DECIMAL64.divide(composite, 2))
            month = start + SEMIANNUAL_MONTHS
        prices.append(PriceRec(base, first_day(month)))

        forfeit_early_prices(issue, prices)
        return prices

    def interest_txns(
        self,
        ticker: str,
        change_for_month: CashFlowProvider,
        *,
        initial_balance: Decimal = Decimal(0),
        today: DateLike | None = None,
        on_rate: Optional[MessageSink] = None,
    ) -> CalcTxnList:
        """
        Interest payments for one holding of the bond identified by ticker.

        - change_for_month(month) is asked once per month for the net external
          deposit (+) or redemption (-); the issue month's change is the purchase.
        - Interest credited before the fifth anniversary is paid 3 months later
          (never after the anniversary month).
        - Payments landing after the current month are discarded.
        """
        issue = self.issue_month(ticker)
        fixed_rate = self._fixed_rate(issue, ticker)
        sink = on_rate if on_rate is not None else self.on_rate
        anniversary = fifth_anniversary(issue)

        cash: Dict[pd.Period, Decimal] = {}

        def change(month: pd.Period) -> Decimal:
            value = change_for_month(month)
            value = value if isinstance(value, Decimal) else Decimal(str(value))
            cash[month] = value
            return value

        opening = Decimal(initial_balance) + change(issue)
        bal = BalanceRec(total_bal=opening, eligible_bal=opening, month=issue)
        txns = CalcTxnList()

        for _start, composite in self._epochs(issue, fixed_rate, sink):
            rate = monthly_rate(composite)
            bal.start_epoch()
            for _ in range(SEMIANNUAL_MONTHS):
                earned = bal.month
                accrual = earned + 1
                interest = monthly_interest(bal.eligible_bal, rate)
                if interest > 0:
                    txns.add(
                        CalcTxn(
                            pay_month=deferred_pay_month(accrual, anniversary),
                            pay_amount=interest,
                            memo=f"{month_label(earned)} interest",
                            accrual_month=accrual,
                        )
                    )
                bal.apply_month(interest, change(accrual))

        # Deferred payments can land past the walk; keep their balances current
        tail = txns.tail_keys(bal.month)
        if tail:
            for month in month_range(bal.month + 1, tail[-1]):
                change(month)

        fill_ending_balances(txns, issue, Decimal(initial_balance), cash)
        txns.discard_after(this_month(today))
        return txns


def forfeit_early_prices(issue_month: pd.Period, prices: List[PriceRec]) -> None:
    """Hide the last 3 months of growth from prices dated before the fifth anniversary.

    Walks backward so each rewrite reads a price not yet rewritten; the three
    earliest prices become the par price.
    """
    if not prices:
        return
    anniversary = first_day(fifth_anniversary(issue_month))
    par = prices[0].share_price
    for i in range(len(prices) - 1, -1, -1):
        if prices[i].date >= anniversary:
            continue
        prices[i].share_price = prices[i - MONTHS_TO_LOSE].share_price if i >= MONTHS_TO_LOSE else par


def fill_ending_balances(txns: CalcTxnList, issue_month: pd.Period, initial_balance: Decimal, cash: Dict[pd.Period, Decimal]) -> None:
    """Set each payment's ending balance to the holding's balance at the end of its pay month.

    That balance is the initial balance plus every external change and every
    paid interest amount through the month.
    """
    last = txns.last_month()
    if last is None:
        return
    running = initial_balance
    for month in month_range(issue_month, last):
        running += cash.get(month, Decimal(0))
        month_txns = txns.get_for_month(month)
        running += sum((t.pay_amount for t in month_txns), Decimal(0))
        for t in month_txns:
            t.set_ending_bal(running)
