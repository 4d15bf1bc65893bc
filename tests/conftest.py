"""
Pytest Configuration for the Bonus Engine
=========================================

Root conftest.py - shared fixtures live in tests/fixtures/.
"""

import logging

import pytest

# Import shared fixtures
from tests.fixtures import *


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
            item.add_marker(pytest.mark.fast)
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "cli" in item.nodeid.lower():
            item.add_marker(pytest.mark.cli)
        if "async" in item.nodeid.lower() or "batch" in item.nodeid.lower():
            item.add_marker(pytest.mark.threading)
        if "config" in item.nodeid.lower():
            item.add_marker(pytest.mark.config)


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Keep handlers added by CLI runs from leaking into later tests."""
    yield
    package_logger = logging.getLogger("bonus_engine")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
