"""
Worker-related type definitions.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from jobdispatch.constants import WorkerStatus
from jobdispatch.types.job import Job


class Worker(BaseModel):
    """
    A remote executor tracked by the worker registry.

    Records are frozen; the registry replaces them on heartbeat and sweep.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    worker_id: str = Field(alias="workerId", min_length=1)
    host: str
    capabilities: frozenset[str] = frozenset()
    last_heartbeat: datetime = Field(alias="lastHeartbeat")
    status: WorkerStatus = WorkerStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == WorkerStatus.ACTIVE

    def can_run(self, job: Job) -> bool:
        """Check whether this worker declares the job's type as a capability."""
        return job.type in self.capabilities

    def heartbeat_older_than(self, cutoff: datetime) -> bool:
        return self.last_heartbeat < cutoff
