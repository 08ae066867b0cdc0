"""
Job store contract.

The scheduling loop and the API depend only on this interface; a durable
backend can be plugged in by implementing it.
"""

from abc import ABC, abstractmethod

from jobdispatch.constants import JobStatus
from jobdispatch.types.job import Job


class JobStore(ABC):
    """
    Map of job id -> job record.

    Every read returns a point-in-time snapshot that callers may modify
    freely; every mutation is atomic with respect to concurrent callers.
    """

    @abstractmethod
    async def save(self, job: Job) -> None:
        """Insert or overwrite the record with the job's id."""

    @abstractmethod
    async def update_status(self, job_id: str, status: JobStatus) -> Job | None:
        """
        Set the status of a stored job and bump its updated_at.

        A missing job is a no-op.

        Returns:
            The updated job, or None if nothing was updated.
        """

    @abstractmethod
    async def record_failed_attempt(self, job_id: str, max_retries: int) -> Job | None:
        """
        Apply the retry bookkeeping for a failed dispatch in one step.

        The current record is re-read: a job that is no longer QUEUED or RETRY
        is left alone. Otherwise it moves to RETRY with retry_count + 1, or to
        FAILED once retry_count has reached ``max_retries``.

        Returns:
            The updated job, or None if nothing was updated.
        """

    @abstractmethod
    async def find_by_id(self, job_id: str) -> Job:
        """
        Get a job by id.

        Raises:
            JobNotFoundError: If no job has this id.
        """

    @abstractmethod
    async def find_all(self) -> list[Job]:
        """Snapshot of every job. Order is unspecified."""

    @abstractmethod
    async def get_pending_jobs(self) -> list[Job]:
        """Snapshot of every QUEUED or RETRY job. Order is unspecified."""

    @abstractmethod
    async def count_by_status(self) -> dict[JobStatus, int]:
        """Number of jobs in each status."""
