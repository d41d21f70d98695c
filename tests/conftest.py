from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.staging import StagingBuilder


@pytest.fixture
def staging(tmp_path: Path) -> StagingBuilder:
    """Provide a source tree and staging directory rooted at the pytest tmp_path."""
    return StagingBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_wextrunk_logger():
    """Drop handlers the CLI attaches so they never outlive a captured stream."""
    yield
    logger = logging.getLogger("wextrunk")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
