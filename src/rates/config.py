from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

import json
import os

import yaml

from rates.history import RateColumn
from rates.ticker import DEFAULT_TICKER_PREFIX, parse_ticker


@dataclass(frozen=True)
class IBondConfig:
    """Canonical run configuration.

    Relative paths are resolved against the directory holding the YAML file.
    """

    rates_path: Path
    # Header text per column role, keyed by RateColumn value
    rate_headers: Dict[str, str]
    rates_sheet: Optional[str] = None

    ticker_prefix: str = DEFAULT_TICKER_PREFIX

    # Optional ledger of bond holdings to reconcile interest against
    ledger_path: Optional[Path] = None

    # Optional override of "today" for deferral and future-discard rules
    as_of: Optional[date] = None

    # Optional tickers whose price curves are written
    price_tickers: Tuple[str, ...] = ()

    def to_normalized_dict(self) -> Dict[str, object]:
        rates_block: Dict[str, object] = {
            "path": str(self.rates_path),
            "columns": {role.value: self.rate_headers[role.value] for role in RateColumn},
        }
        if self.rates_sheet is not None:
            rates_block["sheet"] = self.rates_sheet
        data: Dict[str, object] = {
            "rates": rates_block,
            "ticker_prefix": self.ticker_prefix,
            "ledger": {"path": str(self.ledger_path)} if self.ledger_path is not None else None,
            "as_of": self.as_of.isoformat() if self.as_of is not None else None,
            "price_tickers": list(self.price_tickers),
            "units": {"currency": "USD", "rates": "decimal"},
        }
        return data


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _parse_date(value: object, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).date()
        except ValueError as exc:
            raise ValueError(f"{field_name} must be ISO date (YYYY-MM-DD), got {value!r}") from exc
    raise ValueError(f"{field_name} must be a date string")


def _resolve(base: Path, value: object, field_name: str) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{field_name} must be a non-empty path string")
    p = Path(value)
    return p if p.is_absolute() else base / p


def _validate_rate_headers(values: object) -> Dict[str, str]:
    if not isinstance(values, dict):
        raise ValueError("rates.columns must be a mapping of role->header text")
    out: Dict[str, str] = {}
    for role in RateColumn:
        text = values.get(role.value)
        if not isinstance(text, str) or not text.strip():
            raise ValueError(f"rates.columns.{role.value} must be a non-empty string")
        out[role.value] = text.strip()
    unknown = sorted(set(map(str, values)) - {role.value for role in RateColumn})
    if unknown:
        raise ValueError(f"rates.columns has unknown roles: {unknown}")
    return out


def _validate_price_tickers(values: object, prefix: str) -> Tuple[str, ...]:
    if not isinstance(values, list):
        raise ValueError("price_tickers must be a list of ticker symbols")
    out = []
    for t in values:
        # raises TickerParseError (a ValueError) on malformed symbols
        parse_ticker(str(t), prefix)
        out.append(str(t))
    return tuple(out)


def load_ibond_yaml(path: os.PathLike[str] | str) -> IBondConfig:
    """Load and validate run configuration from YAML."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config YAML not found: {p}")
    with p.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError("Top-level YAML must be a mapping/dict")
    base = p.parent

    # Required
    rates = raw.get("rates")
    if not isinstance(rates, dict):
        raise ValueError("rates section must be provided as a mapping")
    rates_path = _resolve(base, rates.get("path"), "rates.path")
    rate_headers = _validate_rate_headers(rates.get("columns"))
    rates_sheet: Optional[str] = None
    if rates.get("sheet") is not None:
        rates_sheet = str(rates["sheet"])

    ticker_prefix = str(raw.get("ticker_prefix") or DEFAULT_TICKER_PREFIX).strip()
    if not ticker_prefix.isalpha():
        raise ValueError(f"ticker_prefix must be alphabetic, got {ticker_prefix!r}")

    ledger_path: Optional[Path] = None
    ledger = raw.get("ledger")
    if ledger is not None:
        if not isinstance(ledger, dict):
            raise ValueError("ledger section must be a mapping with a path")
        ledger_path = _resolve(base, ledger.get("path"), "ledger.path")

    as_of: Optional[date] = None
    if raw.get("as_of") is not None:
        as_of = _parse_date(raw["as_of"], "as_of")

    price_tickers: Tuple[str, ...] = ()
    if raw.get("price_tickers") is not None:
        price_tickers = _validate_price_tickers(raw["price_tickers"], ticker_prefix)

    return IBondConfig(
        rates_path=rates_path,
        rate_headers=rate_headers,
        rates_sheet=rates_sheet,
        ticker_prefix=ticker_prefix,
        ledger_path=ledger_path,
        as_of=as_of,
        price_tickers=price_tickers,
    )


def write_config_echo(config: IBondConfig, out_path: os.PathLike[str] | str = "output/diagnostics/config_echo.json") -> Path:
    """Write normalized config echo JSON for diagnostics and auditing."""
    out = Path(out_path)
    _ensure_dir(out.parent)
    with out.open("w", encoding="utf-8") as f:
        json.dump(config.to_normalized_dict(), f, indent=2, sort_keys=True)
    return out
