from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from allotment import Progress, logging_config


@pytest.fixture
def fresh_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[logging.Logger]:
    monkeypatch.setattr(logging_config, "_configured", False)
    monkeypatch.setattr(logging_config, "_run_dir", None)
    monkeypatch.setattr(logging_config, "_log_path", None)
    logger = logging.getLogger("allotment")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield logger
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    for h in saved_handlers:
        logger.addHandler(h)
    logger.setLevel(saved_level)


def test_setup_logging_writes_debug_events(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_logging: logging.Logger) -> None:
    log_file = tmp_path / "nested" / "run.log"
    monkeypatch.setenv("ALLOTMENT_LOG_FILE", str(log_file))
    monkeypatch.setenv("ALLOTMENT_LOG_LEVEL", "debug")

    run_dir = logging_config.setup_logging()

    assert run_dir == log_file.parent
    assert logging_config.get_log_path() == log_file
    assert logging_config.current_run_dir() == log_file.parent
    assert fresh_logging.level == logging.DEBUG

    Progress(5).allocate(2)
    for h in fresh_logging.handlers:
        h.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "root progress created allocation=5" in text
    assert "allocate 2 of 5" in text


def test_setup_logging_is_idempotent(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_logging: logging.Logger) -> None:
    monkeypatch.setenv("ALLOTMENT_LOG_FILE", str(tmp_path / "a.log"))
    first = logging_config.setup_logging()
    monkeypatch.setenv("ALLOTMENT_LOG_FILE", str(tmp_path / "other" / "b.log"))
    assert logging_config.setup_logging() == first
    assert len(fresh_logging.handlers) == 1


def test_unknown_level_falls_back_to_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, fresh_logging: logging.Logger) -> None:
    monkeypatch.setenv("ALLOTMENT_LOG_FILE", str(tmp_path / "c.log"))
    monkeypatch.setenv("ALLOTMENT_LOG_LEVEL", "chatty")
    logging_config.setup_logging()
    assert fresh_logging.level == logging.ERROR
