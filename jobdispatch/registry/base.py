"""
Worker registry contract.
"""

from abc import ABC, abstractmethod
from datetime import timedelta

from jobdispatch.constants import WorkerStatus
from jobdispatch.types.job import Job
from jobdispatch.types.worker import Worker


class WorkerRegistry(ABC):
    """
    Map of worker id -> worker record with heartbeat-based liveness.

    All operations must be safe under concurrent invocation from the
    scheduling loop, the liveness monitor and the heartbeat endpoint.
    """

    @abstractmethod
    async def register_worker(self, worker_id: str, host: str, *capabilities: str) -> Worker:
        """Insert or replace a worker; it starts ACTIVE with a fresh heartbeat."""

    @abstractmethod
    async def find_available_worker(self, job: Job) -> Worker | None:
        """Return an ACTIVE worker able to run the job, or None."""

    @abstractmethod
    async def update_heartbeat(self, worker_id: str) -> bool:
        """
        Refresh a worker's heartbeat and mark it ACTIVE.

        Returns:
            False if the worker is unknown.
        """

    @abstractmethod
    async def detect_stale_workers(self, timeout: timedelta) -> list[str]:
        """
        Mark ACTIVE workers whose last heartbeat is older than ``timeout`` STALE.

        Returns:
            Ids of the workers demoted by this sweep.
        """

    @abstractmethod
    async def get_worker(self, worker_id: str) -> Worker:
        """
        Get a worker by id.

        Raises:
            WorkerNotFoundError: If no worker has this id.
        """

    @abstractmethod
    async def list_workers(self) -> list[Worker]:
        """Snapshot of every registered worker."""

    @abstractmethod
    async def set_worker_status(self, worker_id: str, status: WorkerStatus) -> Worker | None:
        """Force a worker's status. Unknown ids are a no-op."""
