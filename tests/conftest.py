"""Pytest configuration shared by all potd_urls tests.

Test constants, feed builders and HTTP mocks live in ``support.py`` so that
unittest-style test modules can import them directly.
"""

import logging
import os

os.environ["TESTING"] = "1"

import pytest


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep developer environment variables from leaking into Config defaults."""
    monkeypatch.delenv("POTD_FEED_URL", raising=False)
    monkeypatch.delenv("LOG_FILE", raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler and level changes made by apply_log_level()."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


def pytest_collection_modifyitems(config, items):
    """Validate that markers are working correctly.

    When running with an explicit marker expression (e.g., -m integration),
    fail loudly if no tests with that marker were collected.
    """
    marker_expr = config.getoption("-m", default=None)
    if marker_expr == "integration":
        integration_items = [item for item in items if item.get_closest_marker("integration")]
        if not integration_items:
            pytest.fail(
                "ERROR: Running with -m integration but no integration tests collected! "
                "Check that tests have the @pytest.mark.integration decorator."
            )
