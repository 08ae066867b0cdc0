"""
Unit tests for the in-memory worker registry.
"""

import asyncio
from datetime import timedelta

import pytest

from jobdispatch.constants import WorkerStatus
from jobdispatch.errors import WorkerNotFoundError
from jobdispatch.registry.memory import InMemoryWorkerRegistry
from jobdispatch.types.job import Job

TIMEOUT = timedelta(seconds=30)


class TestRegistration:
    """Tests for worker registration."""

    async def test_register_worker(self, registry: InMemoryWorkerRegistry, clock):
        """Test that a registered worker is ACTIVE with a fresh heartbeat."""
        worker = await registry.register_worker("w1", "http://w1:8080", "email", "sms")

        assert worker.status == WorkerStatus.ACTIVE
        assert worker.last_heartbeat == clock.now
        assert worker.capabilities == frozenset({"email", "sms"})
        assert await registry.get_worker("w1") == worker

    async def test_reregister_overwrites(self, registry: InMemoryWorkerRegistry):
        """Test that registering the same id replaces the record."""
        await registry.register_worker("w1", "http://old:8080", "email")
        await registry.register_worker("w1", "http://new:8080", "sms")

        workers = await registry.list_workers()
        assert len(workers) == 1
        assert workers[0].host == "http://new:8080"
        assert workers[0].capabilities == frozenset({"sms"})

    async def test_reregister_revives_stale_worker(self, registry: InMemoryWorkerRegistry, clock):
        await registry.register_worker("w1", "http://w1:8080", "email")
        clock.advance(seconds=60)
        await registry.detect_stale_workers(TIMEOUT)

        await registry.register_worker("w1", "http://w1:8080", "email")

        assert (await registry.get_worker("w1")).status == WorkerStatus.ACTIVE

    async def test_get_worker_missing(self, registry: InMemoryWorkerRegistry):
        with pytest.raises(WorkerNotFoundError):
            await registry.get_worker("missing")


class TestFindAvailableWorker:
    """Tests for capability matching."""

    async def test_returns_capable_worker(self, registry: InMemoryWorkerRegistry):
        await registry.register_worker("w1", "http://w1:8080", "email")

        worker = await registry.find_available_worker(Job.create(name="n", type="email"))

        assert worker is not None
        assert worker.worker_id == "w1"

    async def test_no_capable_worker(self, registry: InMemoryWorkerRegistry):
        await registry.register_worker("w1", "http://w1:8080", "email")

        assert await registry.find_available_worker(Job.create(name="n", type="sms")) is None

    async def test_empty_registry(self, registry: InMemoryWorkerRegistry):
        assert await registry.find_available_worker(Job.create(name="n", type="email")) is None

    async def test_capability_match_is_exact(self, registry: InMemoryWorkerRegistry):
        await registry.register_worker("w1", "http://w1:8080", "email-bulk", "EMAIL")

        assert await registry.find_available_worker(Job.create(name="n", type="email")) is None

    async def test_skips_stale_workers(self, registry: InMemoryWorkerRegistry, clock):
        """Test that STALE workers are never returned."""
        await registry.register_worker("old", "http://old:8080", "email")
        clock.advance(seconds=60)
        await registry.register_worker("fresh", "http://fresh:8080", "email")
        await registry.detect_stale_workers(TIMEOUT)

        job = Job.create(name="n", type="email")
        picks = {(await registry.find_available_worker(job)).worker_id for _ in range(5)}

        assert picks == {"fresh"}

    async def test_required_capabilities_do_not_filter(self, registry: InMemoryWorkerRegistry):
        """Test that matching looks at the job type only."""
        await registry.register_worker("plain", "http://plain:8080", "render")

        job = Job.create(name="n", type="render", required_capabilities=["gpu"])
        worker = await registry.find_available_worker(job)

        assert worker is not None
        assert worker.worker_id == "plain"

    async def test_round_robin_across_matches(self, registry: InMemoryWorkerRegistry):
        """Test that equivalent workers are picked in turn, ordered by id."""
        await registry.register_worker("w2", "http://w2:8080", "email")
        await registry.register_worker("w1", "http://w1:8080", "email")
        await registry.register_worker("w3", "http://w3:8080", "email")
        job = Job.create(name="n", type="email")

        picks = [(await registry.find_available_worker(job)).worker_id for _ in range(6)]

        assert picks == ["w1", "w2", "w3", "w1", "w2", "w3"]

    async def test_round_robin_cursor_per_type(self, registry: InMemoryWorkerRegistry):
        await registry.register_worker("w1", "http://w1:8080", "email", "sms")
        await registry.register_worker("w2", "http://w2:8080", "email", "sms")

        email = Job.create(name="n", type="email")
        sms = Job.create(name="n", type="sms")

        assert (await registry.find_available_worker(email)).worker_id == "w1"
        assert (await registry.find_available_worker(sms)).worker_id == "w1"
        assert (await registry.find_available_worker(email)).worker_id == "w2"


class TestLiveness:
    """Tests for heartbeats and stale detection."""

    async def test_heartbeat_refreshes_timestamp(self, registry: InMemoryWorkerRegistry, clock):
        await registry.register_worker("w1", "http://w1:8080", "email")
        clock.advance(seconds=10)

        assert await registry.update_heartbeat("w1") is True

        assert (await registry.get_worker("w1")).last_heartbeat == clock.now

    async def test_heartbeat_unknown_worker(self, registry: InMemoryWorkerRegistry):
        """Test that an unknown heartbeat is reported but harmless."""
        assert await registry.update_heartbeat("ghost") is False
        assert await registry.list_workers() == []

    async def test_heartbeat_revives_stale_worker(self, registry: InMemoryWorkerRegistry, clock):
        """Test that a heartbeat flips STALE back to ACTIVE."""
        await registry.register_worker("w1", "http://w1:8080", "email")
        clock.advance(seconds=60)
        await registry.detect_stale_workers(TIMEOUT)
        assert (await registry.get_worker("w1")).status == WorkerStatus.STALE

        await registry.update_heartbeat("w1")

        worker = await registry.get_worker("w1")
        assert worker.status == WorkerStatus.ACTIVE
        assert worker.last_heartbeat == clock.now
        assert await registry.find_available_worker(Job.create(name="n", type="email")) == worker

    async def test_detect_stale_workers(self, registry: InMemoryWorkerRegistry, clock):
        await registry.register_worker("old", "http://old:8080", "email")
        clock.advance(seconds=31)
        await registry.register_worker("fresh", "http://fresh:8080", "email")

        demoted = await registry.detect_stale_workers(TIMEOUT)

        assert demoted == ["old"]
        assert (await registry.get_worker("old")).status == WorkerStatus.STALE
        assert (await registry.get_worker("fresh")).status == WorkerStatus.ACTIVE

    async def test_exactly_at_timeout_is_not_stale(self, registry: InMemoryWorkerRegistry, clock):
        await registry.register_worker("w1", "http://w1:8080", "email")
        clock.advance(seconds=30)

        assert await registry.detect_stale_workers(TIMEOUT) == []

    async def test_detect_stale_is_idempotent(self, registry: InMemoryWorkerRegistry, clock):
        """Test that a second sweep without heartbeats changes nothing."""
        await registry.register_worker("w1", "http://w1:8080", "email")
        await registry.register_worker("w2", "http://w2:8080", "email")
        clock.advance(seconds=45)
        await registry.update_heartbeat("w2")

        first = await registry.detect_stale_workers(TIMEOUT)
        stale_after_first = {w.worker_id for w in await registry.list_workers() if not w.is_active}
        second = await registry.detect_stale_workers(TIMEOUT)
        stale_after_second = {w.worker_id for w in await registry.list_workers() if not w.is_active}

        assert first == ["w1"]
        assert second == []
        assert stale_after_first == stale_after_second == {"w1"}

    async def test_set_worker_status(self, registry: InMemoryWorkerRegistry):
        await registry.register_worker("w1", "http://w1:8080", "email")

        updated = await registry.set_worker_status("w1", WorkerStatus.STALE)

        assert updated.status == WorkerStatus.STALE
        assert await registry.find_available_worker(Job.create(name="n", type="email")) is None
        assert await registry.set_worker_status("ghost", WorkerStatus.ACTIVE) is None

    async def test_concurrent_heartbeats_and_sweeps(
        self, registry: InMemoryWorkerRegistry, clock
    ):
        """Test that interleaved registry calls leave a consistent state."""
        for i in range(20):
            await registry.register_worker(f"w{i}", f"http://w{i}:8080", "email")
        clock.advance(seconds=60)

        await asyncio.gather(
            *(registry.update_heartbeat(f"w{i}") for i in range(0, 20, 2)),
            registry.detect_stale_workers(TIMEOUT),
            *(registry.find_available_worker(Job.create(name="n", type="email")) for _ in range(5)),
        )

        # Heartbeats after the sweep revive whatever it demoted.
        await asyncio.gather(*(registry.update_heartbeat(f"w{i}") for i in range(0, 20, 2)))
        statuses = {w.worker_id: w.status for w in await registry.list_workers()}

        assert all(statuses[f"w{i}"] == WorkerStatus.ACTIVE for i in range(0, 20, 2))
        assert all(statuses[f"w{i}"] == WorkerStatus.STALE for i in range(1, 20, 2))
