"""Shared test fixtures for asset-palette tests."""

import logging

import pytest

from asset_palette.core.logging_config import PACKAGE_LOGGER


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers bound to a captured stderr once the test that created them ends."""
    yield
    logging.getLogger(PACKAGE_LOGGER).handlers.clear()
