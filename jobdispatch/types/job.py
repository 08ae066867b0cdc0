"""
Job-related type definitions.
"""

import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jobdispatch.clock import utcnow
from jobdispatch.constants import PENDING_STATUSES, JobStatus


class Job(BaseModel):
    """
    A unit of work routed to a worker by its ``type``.

    Instances are frozen. State changes produce new values through
    ``with_status`` / ``with_retry`` and are persisted through the job store,
    which is the single writer of truth. Two jobs are equal iff their
    ``job_id`` matches.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    job_id: str = Field(alias="jobId", min_length=1)
    name: str
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)
    status: JobStatus = JobStatus.QUEUED
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    retry_count: int = Field(default=0, ge=0, alias="retryCount")
    required_capabilities: tuple[str, ...] = Field(
        default=(), alias="requiredCapabilities"
    )

    @field_validator("payload", mode="before")
    @classmethod
    def _copy_payload(cls, value: Any) -> dict[str, Any]:
        # Detach from the caller's mapping so later mutation can't leak in.
        if value is None:
            return {}
        return copy.deepcopy(dict(value))

    @field_validator("required_capabilities", mode="before")
    @classmethod
    def _default_capabilities(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _default_updated_at(self) -> "Job":
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)
        return self

    @classmethod
    def create(
        cls,
        name: str,
        type: str,
        payload: dict[str, Any] | None = None,
        job_id: str | None = None,
        required_capabilities: list[str] | None = None,
        now: datetime | None = None,
    ) -> "Job":
        """
        Build a new QUEUED job.

        Args:
            name: Human readable job name.
            type: Job type, matched against worker capabilities.
            payload: Opaque job data. Copied.
            job_id: Explicit id. A random one is generated when omitted.
            required_capabilities: Capability hints forwarded to the worker.
            now: Creation time. Defaults to the current UTC time.

        Returns:
            Job: The new job with retry_count 0 and created_at == updated_at.
        """
        now = now or utcnow()
        return cls(
            job_id=job_id or uuid4().hex,
            name=name,
            type=type,
            payload=payload,
            status=JobStatus.QUEUED,
            created_at=now,
            updated_at=now,
            retry_count=0,
            required_capabilities=tuple(required_capabilities or ()),
        )

    @property
    def is_pending(self) -> bool:
        """Whether the job is waiting to be dispatched."""
        return self.status in PENDING_STATUSES

    def with_status(self, status: JobStatus, now: datetime | None = None) -> "Job":
        """Return a copy with a new status and a bumped updated_at."""
        return self.model_copy(update={"status": status, "updated_at": now or utcnow()})

    def with_retry(self, now: datetime | None = None) -> "Job":
        """Return a copy moved to RETRY with retry_count incremented."""
        return self.model_copy(
            update={
                "status": JobStatus.RETRY,
                "retry_count": self.retry_count + 1,
                "updated_at": now or utcnow(),
            }
        )

    def to_wire(self) -> dict[str, Any]:
        """Serializable representation pushed to workers."""
        return self.model_dump(mode="json", by_alias=True)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Job):
            return NotImplemented
        return self.job_id == other.job_id

    def __hash__(self) -> int:
        return hash(self.job_id)

    def __repr__(self) -> str:
        return f"Job(job_id={self.job_id!r}, name={self.name!r}, type={self.type!r})"


@dataclass
class CycleResult:
    """
    Summary of one dispatch cycle.
    Returned by the scheduling loop for logging, metrics and tests.
    """

    pending: int = 0
    dispatched: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False

    @property
    def processed(self) -> int:
        """Jobs that reached a dispatch attempt this cycle."""
        return self.dispatched + self.retried + self.failed
