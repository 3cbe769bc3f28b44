"""Shared fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """Undo the CLI's rich handler so caplog sees package records."""
    logger = logging.getLogger("syncgroup_schema")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
