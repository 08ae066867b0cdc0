"""
In-memory worker registry.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import timedelta

from jobdispatch.clock import Clock, utcnow
from jobdispatch.constants import WorkerStatus
from jobdispatch.errors import WorkerNotFoundError
from jobdispatch.registry.base import WorkerRegistry
from jobdispatch.types.job import Job
from jobdispatch.types.worker import Worker

logger = logging.getLogger(__name__)


class InMemoryWorkerRegistry(WorkerRegistry):
    """
    Lock-protected dict of frozen worker records.

    Selection policy: when several ACTIVE workers can run a job, they are
    ordered by worker id and picked round-robin, with one cursor per job
    type. Load therefore spreads evenly across equivalent workers, and a
    given sequence of lookups is reproducible.
    """

    def __init__(self, clock: Clock = utcnow):
        self._workers: dict[str, Worker] = {}
        self._cursors: dict[str, int] = defaultdict(int)
        self._lock = asyncio.Lock()
        self._clock = clock

    async def register_worker(self, worker_id: str, host: str, *capabilities: str) -> Worker:
        worker = Worker(
            worker_id=worker_id,
            host=host,
            capabilities=frozenset(capabilities),
            last_heartbeat=self._clock(),
            status=WorkerStatus.ACTIVE,
        )
        async with self._lock:
            replaced = worker_id in self._workers
            self._workers[worker_id] = worker

        logger.info(
            "Worker registered",
            extra={
                "worker_id": worker_id,
                "host": host,
                "capabilities": sorted(capabilities),
                "replaced": replaced,
            },
        )
        return worker

    async def find_available_worker(self, job: Job) -> Worker | None:
        async with self._lock:
            candidates = sorted(
                (
                    worker
                    for worker in self._workers.values()
                    if worker.is_active and worker.can_run(job)
                ),
                key=lambda worker: worker.worker_id,
            )
            if not candidates:
                return None

            index = self._cursors[job.type] % len(candidates)
            self._cursors[job.type] = index + 1
            return candidates[index]

    async def update_heartbeat(self, worker_id: str) -> bool:
        async with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                logger.warning(
                    "Heartbeat received from unknown worker",
                    extra={"worker_id": worker_id},
                )
                return False

            revived = worker.status != WorkerStatus.ACTIVE
            self._workers[worker_id] = worker.model_copy(
                update={"last_heartbeat": self._clock(), "status": WorkerStatus.ACTIVE}
            )

        if revived:
            logger.info("Worker marked ACTIVE via heartbeat", extra={"worker_id": worker_id})
        return True

    async def detect_stale_workers(self, timeout: timedelta) -> list[str]:
        demoted: list[str] = []
        async with self._lock:
            cutoff = self._clock() - timeout
            for worker_id, worker in self._workers.items():
                if worker.is_active and worker.heartbeat_older_than(cutoff):
                    self._workers[worker_id] = worker.model_copy(
                        update={"status": WorkerStatus.STALE}
                    )
                    demoted.append(worker_id)
                    logger.warning(
                        "Worker marked STALE",
                        extra={
                            "worker_id": worker_id,
                            "last_heartbeat": worker.last_heartbeat.isoformat(),
                        },
                    )
        return demoted

    async def get_worker(self, worker_id: str) -> Worker:
        async with self._lock:
            worker = self._workers.get(worker_id)

        if worker is None:
            raise WorkerNotFoundError(worker_id)
        return worker

    async def list_workers(self) -> list[Worker]:
        async with self._lock:
            return list(self._workers.values())

    async def set_worker_status(self, worker_id: str, status: WorkerStatus) -> Worker | None:
        async with self._lock:
            worker = self._workers.get(worker_id)
            if worker is None:
                logger.warning(
                    "Status update for unknown worker ignored",
                    extra={"worker_id": worker_id, "status": status.value},
                )
                return None
            updated = worker.model_copy(update={"status": status})
            self._workers[worker_id] = updated

        logger.info(
            "Worker status updated",
            extra={"worker_id": worker_id, "status": status.value},
        )
        return updated
