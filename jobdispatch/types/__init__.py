"""
Type definitions for the job dispatcher.
Contains the domain records and the API request/response types.
"""

from jobdispatch.types.api import (
    HealthResponse,
    HeartbeatResponse,
    JobListResponse,
    JobResponse,
    JobStatsResponse,
    RegisterWorkerRequest,
    SubmitJobRequest,
    WorkerListResponse,
    WorkerResponse,
)
from jobdispatch.types.job import CycleResult, Job
from jobdispatch.types.worker import Worker

__all__ = [
    # Domain types
    "Job",
    "Worker",
    "CycleResult",
    # API types
    "SubmitJobRequest",
    "JobResponse",
    "JobListResponse",
    "JobStatsResponse",
    "RegisterWorkerRequest",
    "WorkerResponse",
    "WorkerListResponse",
    "HeartbeatResponse",
    "HealthResponse",
]
