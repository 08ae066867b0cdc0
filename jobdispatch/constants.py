"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class JobStatus(StrEnum):
    """
    Job lifecycle states.

    State transitions (driven by the scheduling loop):
    - QUEUED -> IN_PROGRESS (dispatch succeeded)
    - QUEUED -> RETRY (dispatch failed, retries left)
    - RETRY -> IN_PROGRESS (dispatch succeeded)
    - RETRY -> RETRY (dispatch failed, retries left)
    - QUEUED/RETRY -> FAILED (retries exhausted, terminal)
    """

    QUEUED = "QUEUED"
    IN_PROGRESS = "IN_PROGRESS"
    RETRY = "RETRY"
    FAILED = "FAILED"


class WorkerStatus(StrEnum):
    """Worker liveness states."""

    ACTIVE = "ACTIVE"
    STALE = "STALE"


PENDING_STATUSES: frozenset[JobStatus] = frozenset({JobStatus.QUEUED, JobStatus.RETRY})
TERMINAL_STATUSES: frozenset[JobStatus] = frozenset({JobStatus.FAILED})

# Default values
DEFAULT_MAX_RETRIES = 3
DEFAULT_DISPATCH_TIMEOUT_SECONDS = 5.0
DEFAULT_DISPATCH_PATH = "/execute-job"

# API constants
API_V1_PREFIX = "/v1"

# Metrics names
METRIC_JOBS_SUBMITTED = "jobs_submitted_total"
METRIC_DISPATCH_OUTCOMES = "job_dispatch_outcomes_total"
METRIC_DISPATCH_ATTEMPT_LATENCY = "job_dispatch_attempt_latency_seconds"
METRIC_CYCLE_DURATION = "dispatch_cycle_duration_seconds"
METRIC_PENDING_JOBS = "pending_jobs"
METRIC_WORKERS = "workers"
METRIC_WORKERS_STALE = "workers_marked_stale_total"
METRIC_API_REQUESTS = "api_requests_total"

# Trace span names
SPAN_DISPATCH_CYCLE = "dispatch_cycle"
SPAN_DISPATCH_JOB = "dispatch_job"
SPAN_LIVENESS_SWEEP = "liveness_sweep"

# Dispatch outcome labels
OUTCOME_DISPATCHED = "dispatched"
OUTCOME_RETRY = "retry"
OUTCOME_FAILED = "failed"
OUTCOME_SKIPPED = "skipped"
