from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import json

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.ticker import PercentFormatter

from engine.accrual import compose_rate
from engine.records import PriceRec
from rates.history import RateTable


def _rates_for_plot(table: RateTable) -> pd.DataFrame:
    # float only for drawing; values stay Decimal everywhere else
    months = [r.effective_month.to_timestamp() for r in table]
    return pd.DataFrame(
        {
            "inflation_rate": [float(r.inflation_rate) for r in table],
            "fixed_rate": [float(r.fixed_rate) for r in table],
            "composite_rate": [float(compose_rate(r.fixed_rate, r.inflation_rate)) for r in table],
        },
        index=pd.DatetimeIndex(months, name="date"),
    )


def _write_meta(png: Path, meta: Dict[str, object]) -> None:
    # Minimal metadata for verification in tests
    png.with_suffix(".meta.json").write_text(json.dumps(meta, indent=2), encoding="utf-8")


def plot_rate_history(table: RateTable, out_dir: Path) -> Path:
    """Step chart of published rates and the composite rate of new issues."""
    out_dir.mkdir(parents=True, exist_ok=True)
    df = _rates_for_plot(table)
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.step(df.index, df["composite_rate"], where="post", label="Composite (new issues)")
    ax.step(df.index, df["fixed_rate"], where="post", label="Fixed")
    ax.step(df.index, df["inflation_rate"], where="post", label="Semiannual inflation")
    ax.set_title("Series I Rate History")
    ax.yaxis.set_major_formatter(PercentFormatter(xmax=1, decimals=1))
    ax.legend()
    ax.grid(True, alpha=0.3)
    p = out_dir / "rate_history.png"
    fig.tight_layout()
    fig.savefig(p)
    _write_meta(p, {"title": ax.get_title(), "points": len(df), "last": str(table.last_known_month())})
    plt.close(fig)
    return p


def plot_price_curve(ticker: str, prices: Sequence[PriceRec], out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    dates = pd.to_datetime([p.date for p in prices])
    values = [float(p.share_price) for p in prices]
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.plot(dates, values, drawstyle="steps-post", marker=".", label="Redemption value per $1")
    ax.set_title(f"{ticker} Price")
    ax.set_ylabel("USD")
    ax.legend()
    ax.grid(True, alpha=0.3)
    p = out_dir / f"price_{ticker.upper()}.png"
    fig.tight_layout()
    fig.savefig(p)
    _write_meta(p, {"title": ax.get_title(), "points": len(values), "last_price": str(prices[-1].share_price) if prices else None})
    plt.close(fig)
    return p


def run_qa(table: RateTable, curves: Dict[str, List[PriceRec]], out_dir: Path) -> List[Path]:
    """Write the rate history chart and one chart per priced bond; returns chart paths."""
    paths = [plot_rate_history(table, out_dir)]
    for ticker, prices in curves.items():
        paths.append(plot_price_curve(ticker, prices, out_dir))
    return paths
