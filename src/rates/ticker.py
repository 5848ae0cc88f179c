from __future__ import annotations

import re

import pandas as pd

from core.errors import TickerParseError


DEFAULT_TICKER_PREFIX = "IBond"


def is_ibond_ticker(ticker: object, prefix: str = DEFAULT_TICKER_PREFIX) -> bool:
    """True when ticker starts with the I bond prefix, in any case."""
    if not isinstance(ticker, str):
        return False
    return ticker.strip().lower().startswith(prefix.lower())


def parse_ticker(ticker: str, prefix: str = DEFAULT_TICKER_PREFIX) -> pd.Period:
    """Issue month encoded in a ticker of the form <prefix>YYYYMM.

    Examples: IBond201901, IBOND202212, ibond202304.
    """
    pattern = re.compile(rf"^{re.escape(prefix)}([0-9]{{4}})([0-9]{{2}})$", re.IGNORECASE)
    m = pattern.match(ticker.strip()) if isinstance(ticker, str) else None
    if m is None:
        raise TickerParseError(str(ticker), prefix)
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        raise TickerParseError(ticker, prefix)
    return pd.Period(year=year, month=month, freq="M")
