"""Pytest configuration and fixtures."""

import pytest

from leasequeue import Config, Scheduler, TaskExecutor, TaskStore
from leasequeue.db import make_engine
from leasequeue.payload import _worker_registry

T0 = 1_700_000_000


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")


class FakeClock:
    """Clock whose server and local time only move when told to."""

    def __init__(self, now: int = T0):
        self.now = now
        self.local = 0.0
        self.server_reads = 0

    def server_time(self) -> int:
        self.server_reads += 1
        return self.now

    def local_time(self) -> float:
        return self.local

    def advance(self, seconds: float) -> None:
        """Move both clocks, as real time passing would."""
        self.now += int(seconds)
        self.local += seconds

    def tick_local(self, seconds: float) -> None:
        """Move only the local clock, without anyone re-reading the server."""
        self.local += seconds


@pytest.fixture(autouse=True)
def clear_worker_registry():
    """Clear worker registry before each test."""
    _worker_registry.clear()
    yield
    _worker_registry.clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    """Create test config."""
    return Config(
        database_url="sqlite://",
        default_wait_before_retry_seconds=60,
        use_database_clock=False,
    )


@pytest.fixture
def store():
    """In-memory store with fresh tables."""
    engine = make_engine("sqlite://")
    task_store = TaskStore(engine)
    task_store.create_all()
    yield task_store
    engine.dispose()


@pytest.fixture
def scheduler(store, clock):
    return Scheduler(store, clock)


@pytest.fixture
def executor(scheduler, config):
    return TaskExecutor(scheduler, config)


@pytest.fixture
def leased_task(store, clock, scheduler):
    """Factory: schedule a task and lease it for `lease_seconds`."""

    def make(task_class, data=None, failure_count=0, priority=0, lease_seconds=3600):
        pending = scheduler.schedule(task_class, data, priority=priority)
        if failure_count:
            pending.failure_count = failure_count
            pending.save()
        leased = store.lease_tasks("worker-1", lease_seconds, clock)
        assert [t.id for t in leased] == [pending.id]
        return leased[0]

    return make
