"""
In-memory job store.
"""

import asyncio
import logging

from jobdispatch.clock import Clock, utcnow
from jobdispatch.constants import TERMINAL_STATUSES, JobStatus
from jobdispatch.errors import JobNotFoundError
from jobdispatch.store.base import JobStore
from jobdispatch.types.job import Job

logger = logging.getLogger(__name__)


def _snapshot(job: Job) -> Job:
    # Records are frozen but their payload is a plain dict
    return job.model_copy(deep=True)


class InMemoryJobStore(JobStore):
    """
    Lock-protected dict of frozen job records.

    Jobs are deep-copied on the way in and on the way out, so neither the
    caller of ``save`` nor a reader can reach the stored payload. A job in a
    terminal status is never moved back out of it.
    """

    def __init__(self, clock: Clock = utcnow):
        self._jobs: dict[str, Job] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def save(self, job: Job) -> None:
        stored = _snapshot(job)
        async with self._lock:
            self._jobs[job.job_id] = stored

        logger.debug(
            "Saved job",
            extra={"job_id": job.job_id, "status": job.status.value},
        )

    async def update_status(self, job_id: str, status: JobStatus) -> Job | None:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning(
                    "Status update for unknown job ignored",
                    extra={"job_id": job_id, "status": status.value},
                )
                return None

            if job.status in TERMINAL_STATUSES and status != job.status:
                logger.warning(
                    "Refusing to move job out of terminal status",
                    extra={
                        "job_id": job_id,
                        "current": job.status.value,
                        "requested": status.value,
                    },
                )
                return None

            updated = job.with_status(status, now=self._clock())
            self._jobs[job_id] = updated

        logger.debug(
            "Updated job status",
            extra={"job_id": job_id, "status": status.value},
        )
        return _snapshot(updated)

    async def record_failed_attempt(self, job_id: str, max_retries: int) -> Job | None:
        async with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                logger.warning("Failed attempt for unknown job ignored", extra={"job_id": job_id})
                return None

            if not job.is_pending:
                logger.debug(
                    "Failed attempt for job no longer pending ignored",
                    extra={"job_id": job_id, "status": job.status.value},
                )
                return None

            if job.retry_count >= max_retries:
                updated = job.with_status(JobStatus.FAILED, now=self._clock())
            else:
                updated = job.with_retry(now=self._clock())
            self._jobs[job_id] = updated

        return _snapshot(updated)

    async def find_by_id(self, job_id: str) -> Job:
        async with self._lock:
            job = self._jobs.get(job_id)

        if job is None:
            raise JobNotFoundError(job_id)
        return _snapshot(job)

    async def find_all(self) -> list[Job]:
        async with self._lock:
            jobs = list(self._jobs.values())
        return [_snapshot(job) for job in jobs]

    async def get_pending_jobs(self) -> list[Job]:
        async with self._lock:
            jobs = [job for job in self._jobs.values() if job.is_pending]
        return [_snapshot(job) for job in jobs]

    async def count_by_status(self) -> dict[JobStatus, int]:
        counts = {status: 0 for status in JobStatus}
        async with self._lock:
            for job in self._jobs.values():
                counts[job.status] += 1
        return counts
