from __future__ import annotations

import logging
import subprocess
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional


LOGGER_NAME = "run"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def get_git_sha() -> Optional[str]:
    """Commit SHA of the working tree, or None outside a git checkout."""
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL, text=True)
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.strip() or None


def get_run_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def _has_file_handler(logger: logging.Logger, log_path: Path) -> bool:
    target = log_path.resolve()
    return any(isinstance(h, logging.FileHandler) and Path(h.baseFilename) == target for h in logger.handlers)


def setup_run_logger(log_path: Path, debug: bool = False) -> logging.Logger:
    """Attach a file handler for one valuation run to the "run" logger.

    Calling again with the same file only updates the level, so repeated
    runs in one process (tests, notebooks) don't duplicate lines. Rate
    messages from the engine are logged at DEBUG and only show with debug.
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger = get_run_logger()
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if _has_file_handler(logger, log_path):
        return logger

    fh = logging.FileHandler(log_path, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(fh)
    return logger


def close_run_logger(logger: logging.Logger) -> None:
    """Detach and close file handlers so the log file can be moved or read."""
    for h in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
        logger.removeHandler(h)
        h.close()


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_run_start(
    logger: logging.Logger,
    run_dir: Path,
    config_path: Path | str,
    git_sha: Optional[str],
    *,
    as_of: date | str | None = None,
) -> None:
    logger.info(
        "RUN START utc=%s run_dir=%s config=%s as_of=%s git_sha=%s",
        _utc_now(),
        str(run_dir),
        str(config_path),
        as_of or "today",
        git_sha or "none",
    )


def log_run_end(logger: logging.Logger, status: str = "success", *, staged: Optional[int] = None) -> None:
    if staged is None:
        logger.info("RUN END utc=%s status=%s", _utc_now(), status)
    else:
        logger.info("RUN END utc=%s status=%s staged=%d", _utc_now(), status, staged)
