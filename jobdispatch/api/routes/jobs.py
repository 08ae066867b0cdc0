"""
Job submission and query routes.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from jobdispatch.api.dependencies import AppComponents
from jobdispatch.constants import API_V1_PREFIX, PENDING_STATUSES, JobStatus
from jobdispatch.errors import JobNotFoundError
from jobdispatch.types.api import (
    JobListResponse,
    JobResponse,
    JobStatsResponse,
    SubmitJobRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/jobs", tags=["Jobs"])


@router.post(
    "",
    response_model=JobResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a job",
    description="Queue a new job for dispatch to a worker declaring its type as a capability.",
)
async def submit_job(request: SubmitJobRequest, components: AppComponents) -> JobResponse:
    """
    Submit a new job.

    Args:
        request: Job submission request.
        components: Wired application components.

    Returns:
        JobResponse for the QUEUED job.
    """
    job = request.to_job()
    await components.store.save(job)

    components.metrics.record_job_submitted(job.type)
    logger.info(
        "Job submitted",
        extra={"job_id": job.job_id, "job_type": job.type},
    )

    return JobResponse.from_job(job)


@router.get(
    "/stats/summary",
    response_model=JobStatsResponse,
    summary="Get job statistics",
    description="Get job counts by status.",
)
async def get_job_stats(components: AppComponents) -> JobStatsResponse:
    """
    Get job counts by status.

    Returns:
        JobStatsResponse with a count per status and the pending total.
    """
    counts = await components.store.count_by_status()
    return JobStatsResponse(
        stats={job_status.value: count for job_status, count in counts.items()},
        pending=sum(counts[job_status] for job_status in PENDING_STATUSES),
    )


@router.get(
    "/{job_id}",
    response_model=JobResponse,
    summary="Get job details",
    description="Get detailed information about a specific job.",
)
async def get_job(job_id: str, components: AppComponents) -> JobResponse:
    """
    Get job details by ID.

    Raises:
        HTTPException: If the job is not found.
    """
    try:
        job = await components.store.find_by_id(job_id)
    except JobNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found",
        )

    return JobResponse.from_job(job)


@router.get(
    "",
    response_model=JobListResponse,
    summary="List jobs",
    description="List all jobs, optionally filtered by status.",
)
async def list_jobs(
    components: AppComponents,
    status: JobStatus | None = Query(default=None),
) -> JobListResponse:
    """
    List jobs, newest first.

    Args:
        components: Wired application components.
        status: Optional status filter.

    Returns:
        JobListResponse with the matching jobs.
    """
    jobs = await components.store.find_all()
    if status is not None:
        jobs = [job for job in jobs if job.status == status]
    jobs.sort(key=lambda job: job.created_at, reverse=True)

    return JobListResponse(
        jobs=[JobResponse.from_job(job) for job in jobs],
        total=len(jobs),
    )
