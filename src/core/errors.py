from __future__ import annotations


class RateTableLoadError(ValueError):
    """Rate history could not be loaded (missing columns, no usable rows)."""


class RateNotFoundError(LookupError):
    """No rate is in effect at or before the requested month."""


class LedgerLoadError(ValueError):
    """Ledger file is missing or lacks required columns."""


class BondInputError(ValueError):
    """Per-bond validation problem; reported and skipped, never fatal to a run."""


class TickerParseError(BondInputError):
    def __init__(self, ticker: str, prefix: str) -> None:
        self.ticker = ticker
        self.prefix = prefix
        super().__init__(
            f"Problem parsing date from ticker symbol {ticker!r}; expected {prefix}YYYYMM"
        )


class NoRatesKnownError(BondInputError):
    def __init__(self, month, ticker: str) -> None:
        self.month = month
        self.ticker = ticker
        super().__init__(f"No interest rates for I bonds issued as early as {month} ({ticker})")
