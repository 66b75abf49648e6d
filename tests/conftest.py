"""Pytest configuration and fixtures for integration tests."""

import pytest

import leasequeue
from leasequeue.payload import _worker_registry


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


@pytest.fixture(autouse=True)
def clear_worker_registry():
    """Clear worker registry before each test."""
    _worker_registry.clear()
    yield
    _worker_registry.clear()


@pytest.fixture
def database_url(tmp_path):
    """SQLite database file shared by the daemon's threads."""
    return f"sqlite:///{tmp_path / 'leasequeue.db'}"


@pytest.fixture
def config(database_url):
    """Create config for integration tests."""
    return leasequeue.Config(
        database_url=database_url,
        default_lease_seconds=30,
        default_wait_before_retry_seconds=60,
    )


@pytest.fixture
def init_db(config):
    """Initialize database for tests."""
    leasequeue.init(config)
    yield config
