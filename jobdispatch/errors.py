"""
Error classes for the job dispatcher.

Lookups that miss raise the *NotFoundError types; the API layer turns them
into 404 responses. Dispatch failures are never raised, the dispatch client
reports them as a boolean.
"""


class JobDispatchError(Exception):
    """Base exception for the job dispatcher."""

    pass


class JobNotFoundError(JobDispatchError):
    """Raised when a job id is not present in the job store."""

    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class WorkerNotFoundError(JobDispatchError):
    """Raised when a worker id is not present in the worker registry."""

    def __init__(self, worker_id: str):
        super().__init__(f"Worker not found: {worker_id}")
        self.worker_id = worker_id


class ExecutorShutdownError(JobDispatchError, RuntimeError):
    """Raised when scheduling on a task executor that has been shut down."""

    pass
