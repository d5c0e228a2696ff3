"""Tests for depscope.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from depscope.logging import configure_logging, get_logger


@pytest.fixture(autouse=True)
def _restore_logger():
    logger = logging.getLogger("depscope")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_get_logger_nests_under_depscope() -> None:
    assert get_logger().name == "depscope"
    assert get_logger("parsers.resolved").name == "depscope.parsers.resolved"


def test_configure_logging_is_idempotent() -> None:
    configure_logging()
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_console_lines_carry_component(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging()

    get_logger("imports").info("scanning 3 files")
    get_logger().warning("top level")

    err = capsys.readouterr().err
    assert "[depscope:imports] INFO scanning 3 files" in err
    assert "[depscope:core] WARNING top level" in err


def test_quiet_console_keeps_warnings_only(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging(quiet=True)

    get_logger("collector").info("phase done")
    get_logger("collector").warning("cannot parse")

    err = capsys.readouterr().err
    assert "phase done" not in err
    assert "cannot parse" in err


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / ".depscope" / "logs" / "depscope.log"
    configure_logging(quiet=True, log_file=log_file)

    get_logger("collector").info("phase done")
    for handler in logging.getLogger("depscope").handlers:
        handler.flush()

    assert "depscope.collector: phase done" in log_file.read_text(encoding="utf-8")
