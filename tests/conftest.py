"""
Pytest configuration and shared fixtures.
"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry

from jobdispatch.observability.metrics import MetricsCollector
from jobdispatch.registry.memory import InMemoryWorkerRegistry
from jobdispatch.scheduler.executor import TaskExecutor
from jobdispatch.scheduler.main import JobScheduler
from jobdispatch.store.memory import InMemoryJobStore
from jobdispatch.types.job import Job


class FakeClock:
    """Controllable clock for time-based registry decisions."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeDispatcher:
    """
    Dispatch client stand-in.

    Returns ``result`` (or raises ``error``) and records every call.
    """

    def __init__(self, result: bool = True, error: Exception | None = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        self.in_flight = 0
        self.peak_in_flight = 0

    async def dispatch(self, job: Job, worker_address: str) -> bool:
        self.calls.append((job.job_id, worker_address))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
            return self.result
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Create a metrics collector on a private registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def store(clock: FakeClock) -> InMemoryJobStore:
    """Create an empty job store."""
    return InMemoryJobStore(clock=clock)


@pytest.fixture
def registry(clock: FakeClock) -> InMemoryWorkerRegistry:
    """Create an empty worker registry driven by the fake clock."""
    return InMemoryWorkerRegistry(clock=clock)


@pytest_asyncio.fixture
async def executor() -> AsyncGenerator[TaskExecutor]:
    """Create a task executor, shut down after the test."""
    executor = TaskExecutor(pool_size=2, name_prefix="test-", shutdown_await_seconds=1.0)
    yield executor
    if not executor.is_shutdown:
        await executor.shutdown()


@pytest.fixture
def make_scheduler(store, registry, executor, metrics):
    """Factory building a scheduler around the shared store and registry."""

    def _make(
        dispatcher: FakeDispatcher,
        max_retries: int = 3,
        poll_interval_seconds: float = 10.0,
    ) -> JobScheduler:
        return JobScheduler(
            store=store,
            registry=registry,
            dispatcher=dispatcher,
            executor=executor,
            poll_interval_seconds=poll_interval_seconds,
            max_retries=max_retries,
            metrics=metrics,
        )

    return _make


@pytest.fixture
def sample_payload() -> dict:
    """Create a sample job payload."""
    return {"to": "user@example.com", "subject": "Hello", "tags": ["a", "b"]}


@pytest.fixture
def make_dispatcher():
    """Factory for fake dispatchers: make_dispatcher(result=..., error=..., delay=...)."""
    return FakeDispatcher
