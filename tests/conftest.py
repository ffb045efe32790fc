"""Shared test fixtures."""
import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler and level changes made by setup_logging."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level

    yield

    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
