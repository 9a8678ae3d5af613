"""
Integration test configuration.

Set FILEDEDUP_TEST_SERVER to run these tests against a live server, e.g.:
    FILEDEDUP_TEST_SERVER=http://nas:8080 pytest -m integration

Tests are skipped automatically if the server cannot be reached.
"""
import os

import pytest
import requests


FILEDEDUP_TEST_SERVER = os.environ.get("FILEDEDUP_TEST_SERVER", "http://localhost:8080")


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: marks tests that call a live filededup server",
    )


@pytest.fixture(scope="session")
def live_client():
    """
    A thin wrapper around requests.Session pointed at the live server.
    Skips if the server is unreachable.
    """
    session = requests.Session()
    session.base_url = FILEDEDUP_TEST_SERVER

    try:
        r = session.get(f"{FILEDEDUP_TEST_SERVER}/files/count", timeout=5)
        r.raise_for_status()
    except requests.RequestException as e:
        pytest.skip(f"Live server not reachable at {FILEDEDUP_TEST_SERVER}: {e}")

    return session


def get(session, path, **params):
    url = f"{session.base_url}{path}"
    r = session.get(url, params=params or None, timeout=30)
    r.raise_for_status()
    return r.json()
