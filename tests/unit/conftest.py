"""Pytest configuration for unit tests.

Unit tests must not touch the network: every HTTP interaction is mocked. This
conftest enforces that by patching the common network entry points for tests
under ``tests/unit/``. Integration tests are not affected.
"""

from unittest.mock import patch

import pytest


class NetworkCallDetectedError(Exception):
    """Raised when a unit test attempts to make a network call."""

    def __init__(self, library_name: str, call_type: str):
        self.library_name = library_name
        self.call_type = call_type
        super().__init__(
            f"Network call detected in unit test: {library_name}.{call_type}()\n"
            f"Unit tests must not make network calls. Use mocks instead.\n"
            f"If this test needs network access, it should be moved to integration/."
        )


def _create_network_blocker(library_name: str, call_type: str):
    """Create a function that blocks network calls and raises an error."""

    def blocker(*args, **kwargs):
        raise NetworkCallDetectedError(library_name, call_type)

    return blocker


def _is_unit_test(request) -> bool:
    """Check if the current test is in the unit/ directory."""
    nodeid = getattr(request.node, "nodeid", "")
    if "tests/integration/" in nodeid:
        return False
    if "tests/unit/" in nodeid:
        return True
    test_file = str(getattr(request.node, "path", "") or getattr(request.node, "fspath", ""))
    return "/tests/unit/" in test_file or "\\tests\\unit\\" in test_file


@pytest.fixture(autouse=True)
def block_network(request):
    """Automatically block network calls in unit tests."""
    if not _is_unit_test(request):
        yield
        return

    patchers = []

    import requests

    for method in ["get", "post", "put", "delete", "head", "options", "patch"]:
        patchers.append(
            patch.object(requests, method, side_effect=_create_network_blocker("requests", method))
        )
    patchers.append(
        patch.object(
            requests.Session,
            "request",
            side_effect=_create_network_blocker("requests.Session", "request"),
            autospec=True,
        )
    )

    import socket

    patchers.append(
        patch.object(
            socket,
            "create_connection",
            side_effect=_create_network_blocker("socket", "create_connection"),
        )
    )

    for patcher in patchers:
        patcher.start()
    try:
        yield
    finally:
        for patcher in reversed(patchers):
            patcher.stop()
