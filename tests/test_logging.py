"""Tests for wextrunk.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from wextrunk.logging import configure_logging, get_logger


def test_get_logger_nests_under_package_logger() -> None:
    assert get_logger().name == "wextrunk"
    assert get_logger("orchestrator").name == "wextrunk.orchestrator"


def test_configure_logging_replaces_handlers_and_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "build.log"

    configure_logging(verbose=False)
    logger = configure_logging(verbose=True, log_file=log_file)
    get_logger("scanner").debug("scanned %d", 3)
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert "wextrunk.scanner: scanned 3" in log_file.read_text(encoding="utf-8")
