from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import math
import pandas as pd

from core.dates import to_month
from core.errors import RateNotFoundError, RateTableLoadError


INTEREST_RATE_PLACES = Decimal("0.0001")


class RateColumn(Enum):
    """Roles of the rate history columns we read."""

    INFLATION_RATE = "inflation_rate"
    FIXED_RATE = "fixed_rate"
    EFFECTIVE_DATE = "effective_date"


def build_header_lookup(headers: Mapping[str, str]) -> Dict[str, RateColumn]:
    """Map configured header text to column roles.

    headers is keyed by role value (inflation_rate, fixed_rate, effective_date)
    with the header text found in the rate history as values. Matching is
    exact after trimming surrounding whitespace.
    """
    lookup: Dict[str, RateColumn] = {}
    missing = [role.value for role in RateColumn if not str(headers.get(role.value) or "").strip()]
    if missing:
        raise RateTableLoadError(f"Rate history header names not configured for: {missing}")
    for role in RateColumn:
        text = str(headers[role.value]).strip()
        if text in lookup:
            raise RateTableLoadError(f"Header {text!r} configured for both {lookup[text].value} and {role.value}")
        lookup[text] = role
    return lookup


def clean_rate(value: object) -> Optional[Decimal]:
    """Interest rate rounded half-even to 4 places, or None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        # str() first so binary floats like 0.0197 stay 0.0197
        rate = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not rate.is_finite():
        return None
    return rate.quantize(INTEREST_RATE_PLACES, rounding=ROUND_HALF_EVEN)


@dataclass(frozen=True)
class RateRecord:
    """Series I rates published by TreasuryDirect, effective from a month.

    inflation_rate is the semiannual (half-year) inflation rate; fixed_rate is
    the fixed rate for bonds issued while this record is in effect.
    """

    inflation_rate: Decimal
    fixed_rate: Decimal
    effective_month: pd.Period


class RateTable:
    """Rate history ordered by effective month with floor lookup."""

    def __init__(self, records: Iterable[RateRecord]) -> None:
        by_month: Dict[pd.Period, RateRecord] = {}
        for rec in records:
            # later rows for the same month replace earlier ones
            by_month[rec.effective_month] = rec
        if not by_month:
            raise RateTableLoadError("Rate history contains no usable rows")
        months = sorted(by_month)
        self._records: List[RateRecord] = [by_month[m] for m in months]
        self._index = pd.PeriodIndex(months, freq="M")

    @classmethod
    def from_records(cls, records: Iterable[RateRecord]) -> "RateTable":
        return cls(records)

    @classmethod
    def from_frame(cls, df: pd.DataFrame, header_lookup: Mapping[str, RateColumn]) -> "RateTable":
        """Build a table from a frame whose columns carry the configured headers.

        Rows with a missing or non-numeric rate, or an unparseable date, are
        skipped. Missing columns are a load error.
        """
        columns: Dict[RateColumn, object] = {}
        for col in df.columns:
            role = header_lookup.get(str(col).strip())
            if role is not None and role not in columns:
                columns[role] = col
        missing = [role for role in RateColumn if role not in columns]
        if missing:
            expected = sorted(header_lookup)
            raise RateTableLoadError(f"Unable to locate column headers {expected} in rate history")

        dates = pd.to_datetime(df[columns[RateColumn.EFFECTIVE_DATE]], errors="coerce")
        records: List[RateRecord] = []
        for i_val, f_val, d_val in zip(df[columns[RateColumn.INFLATION_RATE]], df[columns[RateColumn.FIXED_RATE]], dates):
            inflation = clean_rate(i_val)
            fixed = clean_rate(f_val)
            if inflation is None or fixed is None or pd.isna(d_val):
                continue
            records.append(RateRecord(inflation, fixed, to_month(d_val)))
        return cls(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RateRecord]:
        return iter(self._records)

    def first_known_month(self) -> pd.Period:
        return self._records[0].effective_month

    def last_known_month(self) -> pd.Period:
        return self._records[-1].effective_month

    def rate_for(self, month) -> RateRecord:
        """Return the record in effect for month (greatest effective month <= month)."""
        m = to_month(month)
        pos = int(self._index.searchsorted(m, side="right")) - 1
        if pos < 0:
            raise RateNotFoundError(f"No rate in effect at {m}; earliest known is {self.first_known_month()}")
        return self._records[pos]

    def to_frame(self) -> pd.DataFrame:
        df = pd.DataFrame(
            {
                "inflation_rate": [str(r.inflation_rate) for r in self._records],
                "fixed_rate": [str(r.fixed_rate) for r in self._records],
            },
            index=self._index,
        )
        df.index.name = "effective_month"
        return df


def _read_any(path: Path, sheet: Optional[str] = None) -> pd.DataFrame:
    if path.suffix.lower() == ".csv":
        # keep raw text so rates convert to Decimal without float noise
        return pd.read_csv(path, dtype=str)
    if path.suffix.lower() in {".xlsx", ".xls"}:
        return pd.read_excel(path, sheet_name=sheet if sheet is not None else 0)
    raise RateTableLoadError(f"Unsupported rate history file type: {path.suffix}")


def load_rate_history(path: str | Path, header_lookup: Mapping[str, RateColumn], *, sheet: Optional[str] = None) -> RateTable:
    """Load a rate table from a local CSV or XLSX export of the rate history."""
    p = Path(path)
    if not p.exists():
        raise RateTableLoadError(f"Rate history not found: {p}")
    try:
        df = _read_any(p, sheet)
    except RateTableLoadError:
        raise
    except Exception as exc:
        raise RateTableLoadError(f"Problem reading rate history {p}: {exc}") from exc
    return RateTable.from_frame(df, header_lookup)


def write_rates_preview(table: RateTable, out_path: str | Path = "output/diagnostics/rates_preview.csv") -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    table.to_frame().to_csv(out, index=True)
    return out
