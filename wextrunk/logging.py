"""Logging utilities for wextrunk commands."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

_LOGGER_NAME = "wextrunk"
_CONSOLE_FORMAT = "[wextrunk] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the wextrunk hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach console output (and optionally a log file) to the wextrunk logger.

    Trunk runs the hook on every rebuild in watch mode, so handlers from an
    earlier call are dropped before new ones are attached.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    handlers[0].setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        logger.addHandler(handler)
    return logger


@contextmanager
def stage_timer(logger: logging.Logger, stage: str) -> Iterator[None]:
    """Log how long a pipeline stage took at debug level."""
    start = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("Stage %s took %.1fms", stage, (time.perf_counter() - start) * 1000)


__all__ = ["configure_logging", "get_logger", "stage_timer"]
