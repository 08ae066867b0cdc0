"""
End-to-end tests for the background dispatch loop over HTTP.
"""

import asyncio
import json

import httpx
import pytest

from jobdispatch.bootstrap import build_components
from jobdispatch.config import Settings
from jobdispatch.constants import JobStatus
from jobdispatch.dispatcher.client import DispatchClient
from jobdispatch.registry.memory import InMemoryWorkerRegistry
from jobdispatch.store.memory import InMemoryJobStore
from jobdispatch.types.job import Job


class FakeWorkerPool:
    """Routes dispatch requests to per-host status codes and records bodies."""

    def __init__(self, statuses: dict[str, int]):
        self.statuses = statuses
        self.received: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.received.append((request.url.host, json.loads(request.content)))
        return httpx.Response(self.statuses.get(request.url.host, 503))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        scheduler_poll_interval_ms=100,
        scheduler_max_retries=2,
        liveness_interval_ms=100,
        scheduler_shutdown_await_ms=1_000,
    )


def build(settings, pool: FakeWorkerPool, metrics):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(pool))
    dispatcher = DispatchClient(
        client=http_client, max_attempts=1, backoff_seconds=0, metrics=metrics
    )
    return build_components(
        settings=settings,
        store=InMemoryJobStore(),
        registry=InMemoryWorkerRegistry(),
        dispatcher=dispatcher,
        metrics=metrics,
    )


class TestDispatchLoop:
    """Tests running the real executor, scheduler and HTTP client together."""

    async def test_jobs_reach_matching_workers(self, settings, metrics):
        pool = FakeWorkerPool({"mailer": 200})
        components = build(settings, pool, metrics)
        await components.registry.register_worker("mailer", "mailer:8080", "email")
        await components.store.save(Job.create(job_id="j1", name="welcome", type="email"))
        await components.store.save(Job.create(job_id="j2", name="otp", type="sms"))

        components.start()
        await asyncio.sleep(0.25)
        await components.shutdown()

        assert (await components.store.find_by_id("j1")).status == JobStatus.IN_PROGRESS
        assert (await components.store.find_by_id("j2")).status == JobStatus.QUEUED
        assert len(pool.received) == 1
        host, body = pool.received[0]
        assert host == "mailer"
        assert body["jobId"] == "j1"

    async def test_rejecting_worker_exhausts_retries(self, settings, metrics):
        pool = FakeWorkerPool({"broken": 500})
        components = build(settings, pool, metrics)
        await components.registry.register_worker("broken", "http://broken:8080", "email")
        await components.store.save(Job.create(job_id="j1", name="welcome", type="email"))

        components.start()
        await asyncio.sleep(0.45)
        await components.shutdown()

        job = await components.store.find_by_id("j1")
        assert job.status == JobStatus.FAILED
        assert job.retry_count == 2
        # Initial attempt plus two retries; FAILED jobs are not dispatched again
        assert len(pool.received) == 3

    async def test_double_start_runs_one_loop(self, settings, metrics):
        """Starting twice schedules a single loop that stops cleanly."""
        components = build(settings, FakeWorkerPool({}), metrics)
        scheduler = components.scheduler

        scheduler.start()
        scheduler.start()
        assert components.executor.active_count == 1

        await asyncio.sleep(0.35)
        scheduler.stop()
        await asyncio.sleep(0.01)
        cycles = scheduler.cycles_run

        assert 2 <= cycles <= 5

        await asyncio.sleep(0.25)
        assert scheduler.cycles_run == cycles
        await components.shutdown()

    async def test_shutdown_closes_http_client(self, settings, metrics):
        components = build_components(settings=settings, metrics=metrics)
        components.start()

        await components.shutdown()

        assert components.executor.is_shutdown
        assert components.dispatcher._client.is_closed
