from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


def generate_utc_timestamp() -> str:
    """Return a UTC timestamp in YYYYMMDDTHHMMSSZ format, e.g. 20250910T143015Z."""
    now_utc = datetime.now(timezone.utc)
    return now_utc.strftime("%Y%m%dT%H%M%SZ")


def create_run_directory(base_output_dir: str | Path = "output", timestamp: Optional[str] = None) -> Path:
    """Create and return a unique timestamped run directory under base_output_dir.

    If a directory already exists for the timestamp, numerical suffixes
    (-1, -2, ...) are appended until a free name is found.
    """
    base = Path(base_output_dir)
    base.mkdir(parents=True, exist_ok=True)

    ts = timestamp or generate_utc_timestamp()
    candidate = base / ts
    suffix = 0
    while candidate.exists():
        suffix += 1
        candidate = base / f"{ts}-{suffix}"
    candidate.mkdir(parents=True, exist_ok=False)
    return candidate


@dataclass(frozen=True)
class RunArtifacts:
    """File layout of one valuation run."""

    run_dir: Path

    @property
    def log(self) -> Path:
        return self.run_dir / "run_values.log"

    @property
    def config_echo(self) -> Path:
        return self.run_dir / "diagnostics" / "config_echo.json"

    @property
    def rates_preview(self) -> Path:
        return self.run_dir / "diagnostics" / "rates_preview.csv"

    @property
    def interest_txns(self) -> Path:
        return self.run_dir / "interest_txns.csv"

    @property
    def messages(self) -> Path:
        return self.run_dir / "messages.txt"

    @property
    def qa_dir(self) -> Path:
        return self.run_dir / "diagnostics" / "qa"

    def price_curve(self, ticker: str) -> Path:
        return self.run_dir / "prices" / f"{ticker.upper()}.csv"


def run_artifacts(run_dir: Path) -> RunArtifacts:
    return RunArtifacts(Path(run_dir))
