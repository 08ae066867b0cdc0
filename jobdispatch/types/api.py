"""
API request and response type definitions.

Field names are camelCase on the wire to match the job representation
pushed to workers.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobdispatch.constants import JobStatus, WorkerStatus
from jobdispatch.types.job import Job
from jobdispatch.types.worker import Worker


class ApiModel(BaseModel):
    """Base model for API bodies: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitJobRequest(ApiModel):
    """Request body for submitting a new job."""

    name: str = Field(..., min_length=1, description="Job name")
    type: str = Field(..., min_length=1, description="Job type used for capability matching")
    payload: dict[str, Any] = Field(default_factory=dict, description="Job payload data")
    required_capabilities: list[str] = Field(
        default_factory=list, description="Capability hints forwarded to the worker"
    )

    def to_job(self) -> Job:
        """Map the request onto a fresh QUEUED job."""
        return Job.create(
            name=self.name,
            type=self.type,
            payload=self.payload,
            required_capabilities=self.required_capabilities,
        )


class JobResponse(ApiModel):
    """Full job details response."""

    job_id: str
    name: str
    type: str
    payload: dict[str, Any]
    status: JobStatus
    retry_count: int
    required_capabilities: list[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_job(cls, job: Job) -> "JobResponse":
        return cls(
            job_id=job.job_id,
            name=job.name,
            type=job.type,
            payload=job.payload,
            status=job.status,
            retry_count=job.retry_count,
            required_capabilities=list(job.required_capabilities),
            created_at=job.created_at,
            updated_at=job.updated_at,
        )


class JobListResponse(ApiModel):
    """List of jobs."""

    jobs: list[JobResponse]
    total: int


class JobStatsResponse(ApiModel):
    """Job counts by status."""

    stats: dict[str, int]
    pending: int


class RegisterWorkerRequest(ApiModel):
    """Request body for registering a worker."""

    worker_id: str = Field(..., min_length=1, description="Unique worker identifier")
    host: str = Field(..., min_length=1, description="Worker base address")
    capabilities: list[str] = Field(default_factory=list, description="Job types the worker runs")


class WorkerResponse(ApiModel):
    """Worker details response."""

    worker_id: str
    host: str
    capabilities: list[str]
    last_heartbeat: datetime
    status: WorkerStatus

    @classmethod
    def from_worker(cls, worker: Worker) -> "WorkerResponse":
        return cls(
            worker_id=worker.worker_id,
            host=worker.host,
            capabilities=sorted(worker.capabilities),
            last_heartbeat=worker.last_heartbeat,
            status=worker.status,
        )


class WorkerListResponse(ApiModel):
    """List of workers."""

    workers: list[WorkerResponse]
    total: int


class HeartbeatResponse(ApiModel):
    """Heartbeat acknowledgement."""

    worker_id: str
    status: WorkerStatus
    last_heartbeat: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    scheduler: str
    liveness_monitor: str
    timestamp: datetime
