from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _reset_scanner_logger() -> Iterator[None]:
    """Drop handlers added by setup_logging so each test configures its own."""
    yield
    logger = logging.getLogger("scanner")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
