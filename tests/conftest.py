"""Shared test fixtures."""

import logging

import pytest

from geotag.logging import set_log_catalog


@pytest.fixture(autouse=True)
def reset_geotag_logger():
    """Drop handlers added by setup_logging() so they don't outlive the test's streams."""
    yield
    logger = logging.getLogger("geotag")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    set_log_catalog(None)
