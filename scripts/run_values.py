from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

# Ensure 'src' is on sys.path when invoked directly
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from core.errors import BondInputError, LedgerLoadError, RateTableLoadError
from core.logging_utils import close_run_logger, get_git_sha, log_run_end, log_run_start, setup_run_logger
from core.run_dir import create_run_directory, run_artifacts
from engine.project import ValuationEngine
from engine.records import PriceRec, prices_to_frame
from ledger.cashflows import load_ledger_csv
from ledger.reconcile import refresh_interest
from rates.config import load_ibond_yaml, write_config_echo
from rates.history import build_header_lookup, load_rate_history, write_rates_preview
from rates.ticker import is_ibond_ticker


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="Derive Series I savings bond interest and prices from rate history")
    ap.add_argument("--config", default="input/ibond.yaml")
    ap.add_argument("--dry-run", action="store_true", help="Parse config and exit (no run)")
    ap.add_argument("--prices", action="store_true", help="Write price curves for price_tickers and ledger bonds")
    ap.add_argument("--diagnostics", action="store_true", help="Write QA charts of rates and price curves")
    ap.add_argument("--as-of", default=None, help="Treat this date (YYYY-MM-DD) as today")
    ap.add_argument("--debug", action="store_true", help="Enable DEBUG logging for this run")
    ap.add_argument("--outdir", default=None, help="Override output directory (for tests)")
    args = ap.parse_args(argv)

    cfg = load_ibond_yaml(args.config)
    base_out = args.outdir or "output"
    run_dir = create_run_directory(base_output_dir=base_out)
    artifacts = run_artifacts(run_dir)
    today = args.as_of or cfg.as_of
    logger = setup_run_logger(artifacts.log, debug=args.debug)
    log_run_start(logger, run_dir=run_dir, config_path=args.config, git_sha=get_git_sha(), as_of=today)
    write_config_echo(cfg, out_path=artifacts.config_echo)
    logger.debug("CONFIG rates=%s ledger=%s prefix=%s", cfg.rates_path, cfg.ledger_path, cfg.ticker_prefix)

    if args.dry_run:
        print("DRY RUN OK: config parsed, rates=", cfg.rates_path)
        log_run_end(logger, status="dry-run")
        close_run_logger(logger)
        return

    try:
        table = load_rate_history(cfg.rates_path, build_header_lookup(cfg.rate_headers), sheet=cfg.rates_sheet)
    except RateTableLoadError as exc:
        logger.error("RATES LOAD ERROR: %s", str(exc))
        log_run_end(logger, status="failed")
        close_run_logger(logger)
        raise SystemExit(f"Unable to load I bond rate history: {exc}")
    logger.info("RATES LOADED rows=%d first=%s last=%s", len(table), table.first_known_month(), table.last_known_month())
    write_rates_preview(table, out_path=artifacts.rates_preview)
    logger.debug("RATES PREVIEW path=%s", str(artifacts.rates_preview))

    engine = ValuationEngine(rate_table=table, ticker_prefix=cfg.ticker_prefix)
    price_tickers = list(cfg.price_tickers)
    staged: Optional[int] = None

    if cfg.ledger_path is not None:
        try:
            ledger = load_ledger_csv(cfg.ledger_path)
        except LedgerLoadError as exc:
            logger.error("LEDGER LOAD ERROR: %s", str(exc))
            log_run_end(logger, status="failed")
            close_run_logger(logger)
            raise SystemExit(f"Unable to load ledger: {exc}")
        logger.debug("REFRESH START ledger=%s rows=%d as_of=%s", cfg.ledger_path, len(ledger.frame), today or "today")
        result = refresh_interest(engine, ledger, today=today)
        result.to_frame().to_csv(artifacts.interest_txns, index=False)
        artifacts.messages.write_text("\n".join(result.messages) + "\n", encoding="utf-8")
        for msg in result.messages:
            print(msg)
        logger.info("REFRESH END staged=%d path=%s", len(result.staged), str(artifacts.interest_txns))
        staged = len(result.staged)
        if result.is_modified:
            print(f"{len(result.staged)} new interest payment(s) staged in {artifacts.interest_txns}")
        for t in ledger.tickers():
            if t not in price_tickers and is_ibond_ticker(t, cfg.ticker_prefix):
                price_tickers.append(t)

    curves: Dict[str, List[PriceRec]] = {}
    if args.prices or args.diagnostics:
        for ticker in price_tickers:
            try:
                curves[ticker] = engine.price_curve(ticker, on_rate=logger.debug)
            except BondInputError as exc:
                print(str(exc))
                logger.warning("PRICES SKIP ticker=%s reason=%s", ticker, str(exc))

    if args.prices:
        for ticker, prices in curves.items():
            out = artifacts.price_curve(ticker)
            out.parent.mkdir(parents=True, exist_ok=True)
            prices_to_frame(prices).to_csv(out, index=False)
            logger.info("PRICES WRITE ticker=%s points=%d path=%s", ticker, len(prices), str(out))

    # Optional diagnostics & visuals
    if args.diagnostics:
        # Ensure headless backend
        import matplotlib

        matplotlib.use("Agg")
        from diagnostics.qa import run_qa

        logger.debug("QA START")
        charts = run_qa(table, curves, artifacts.qa_dir)
        print("Wrote QA:", *charts)
        logger.info("QA WRITE charts=%d dir=%s", len(charts), str(artifacts.qa_dir))

    log_run_end(logger, status="success", staged=staged)
    close_run_logger(logger)


if __name__ == "__main__":
    main()
