from __future__ import annotations

from pathlib import Path

from core.logging_utils import close_run_logger, log_run_end, log_run_start, setup_run_logger


def test_setup_and_write_log(tmp_path: Path) -> None:
    log_path = tmp_path / "run_values.log"
    logger = setup_run_logger(log_path=log_path, debug=False)
    log_run_start(logger, run_dir=tmp_path, config_path="input/ibond.yaml", git_sha="abc123")
    log_run_end(logger, status="success")
    close_run_logger(logger)

    assert log_path.exists()
    text = log_path.read_text(encoding="utf-8")
    assert "RUN START" in text
    assert "git_sha=abc123" in text
    assert "RUN END" in text


def test_setup_is_idempotent_per_file(tmp_path: Path) -> None:
    log_path = tmp_path / "run_values.log"
    logger = setup_run_logger(log_path=log_path, debug=True)
    setup_run_logger(log_path=log_path, debug=True)
    logger.debug("ONCE")
    close_run_logger(logger)

    assert log_path.read_text(encoding="utf-8").count("ONCE") == 1


def test_run_markers_carry_as_of_and_staged(tmp_path: Path) -> None:
    log_path = tmp_path / "run_values.log"
    logger = setup_run_logger(log_path=log_path)
    log_run_start(logger, run_dir=tmp_path, config_path="input/ibond.yaml", git_sha=None, as_of="2024-06-15")
    log_run_end(logger, staged=2)
    close_run_logger(logger)

    text = log_path.read_text(encoding="utf-8")
    assert "as_of=2024-06-15 git_sha=none" in text
    assert "status=success staged=2" in text
