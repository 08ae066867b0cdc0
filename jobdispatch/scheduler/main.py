"""
Job scheduling loop.

On a fixed cadence the scheduler reads the pending jobs, finds a capable
worker for each, pushes the job through the dispatch client and records
the outcome in the job store.
"""

import asyncio
import logging
import time

from jobdispatch.constants import (
    DEFAULT_MAX_RETRIES,
    OUTCOME_DISPATCHED,
    OUTCOME_FAILED,
    OUTCOME_RETRY,
    OUTCOME_SKIPPED,
    SPAN_DISPATCH_CYCLE,
    JobStatus,
)
from jobdispatch.dispatcher.client import DispatchClient
from jobdispatch.observability.logging import log_context
from jobdispatch.observability.metrics import MetricsCollector, get_metrics
from jobdispatch.observability.tracing import get_tracer
from jobdispatch.registry.base import WorkerRegistry
from jobdispatch.scheduler.executor import ScheduledTask, TaskExecutor
from jobdispatch.store.base import JobStore
from jobdispatch.types.job import CycleResult, Job

logger = logging.getLogger(__name__)


class JobScheduler:
    """
    Periodic dispatcher of pending jobs.

    Per job and cycle:
    - no capable ACTIVE worker: left untouched, picked up again next cycle
    - dispatch succeeded: IN_PROGRESS
    - dispatch failed with retries left: RETRY, retry_count + 1
    - dispatch failed with retry_count >= max_retries: FAILED

    Jobs inside a cycle are handled one after the other and cycles never
    overlap, even across stop() and start(). A fault while handling one job
    counts as a failed dispatch for that job only.
    """

    def __init__(
        self,
        store: JobStore,
        registry: WorkerRegistry,
        dispatcher: DispatchClient,
        executor: TaskExecutor,
        poll_interval_seconds: float = 10.0,
        max_retries: int = DEFAULT_MAX_RETRIES,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Job store holding the queue.
            registry: Worker registry used for capability matching.
            dispatcher: Client that pushes jobs to workers.
            executor: Executor running the periodic cycle.
            poll_interval_seconds: Seconds between cycle starts.
            max_retries: Failed dispatches tolerated before a job is FAILED.
            metrics: Metrics collector. Uses the global one if omitted.
        """
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")

        self.poll_interval = poll_interval_seconds
        self.max_retries = max_retries

        self._store = store
        self._registry = registry
        self._dispatcher = dispatcher
        self._executor = executor
        self._metrics = metrics or get_metrics()
        self._schedule: ScheduledTask | None = None
        self._cycle = 0
        # Held for a whole cycle; a restart never overlaps a cycle still running
        self._cycle_lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._schedule is not None and not self._schedule.cancelled

    @property
    def cycles_run(self) -> int:
        return self._cycle

    def start(self) -> None:
        """
        Schedule the dispatch cycle, first run immediately.

        Calling it while already running does nothing.
        """
        if self.is_running:
            logger.warning("JobScheduler already started")
            return

        logger.info(
            "Starting JobScheduler",
            extra={"poll_interval": self.poll_interval, "max_retries": self.max_retries},
        )
        self._schedule = self._executor.schedule_at_fixed_rate(
            self.poll_and_dispatch,
            initial_delay=0,
            interval=self.poll_interval,
            name="dispatch-cycle",
        )

    def stop(self) -> None:
        """Cancel future cycles. A cycle already running completes."""
        if self._schedule is None:
            logger.debug("JobScheduler stop() called but scheduler was not running")
            return

        self._schedule.cancel()
        self._schedule = None
        logger.info("JobScheduler stopped")

    async def poll_and_dispatch(self) -> CycleResult:
        """
        Run one dispatch cycle over a snapshot of the pending jobs.

        Waits for a cycle already in progress on this scheduler to finish.

        Returns:
            CycleResult: What happened to the jobs in this cycle.
        """
        async with self._cycle_lock:
            return await self._run_cycle()

    async def _run_cycle(self) -> CycleResult:
        self._cycle += 1
        result = CycleResult()
        start_time = time.monotonic()

        with log_context(dispatch_cycle=self._cycle), get_tracer().start_as_current_span(
            SPAN_DISPATCH_CYCLE
        ) as span:
            try:
                pending = await self._store.get_pending_jobs()
                result.pending = len(pending)

                if not pending:
                    logger.debug("No pending jobs found")
                    return result

                for job in pending:
                    outcome = await self._process_job(job)
                    self._tally(result, outcome)
                    self._metrics.record_dispatch_outcome(job.type, outcome)

                logger.info(
                    "Dispatch cycle complete",
                    extra={
                        "pending": result.pending,
                        "dispatched": result.dispatched,
                        "retried": result.retried,
                        "failed": result.failed,
                        "skipped": result.skipped,
                    },
                )

            except Exception as e:
                result.aborted = True
                logger.exception(f"Unexpected error in dispatch cycle: {e}")

            finally:
                span.set_attribute("pending", result.pending)
                span.set_attribute("dispatched", result.dispatched)
                self._metrics.record_cycle(result.pending, time.monotonic() - start_time)

        return result

    async def _process_job(self, job: Job) -> str:
        """Match, dispatch and record one job. Returns the outcome label."""
        try:
            worker = await self._registry.find_available_worker(job)
            if worker is None:
                logger.debug(
                    "No available worker for job",
                    extra={"job_id": job.job_id, "job_type": job.type},
                )
                return OUTCOME_SKIPPED

            delivered = await self._dispatcher.dispatch(job, worker.host)

        except Exception as e:
            logger.exception(
                f"Error dispatching job: {e}",
                extra={"job_id": job.job_id},
            )
            delivered = False
            worker = None

        if delivered:
            await self._store.update_status(job.job_id, JobStatus.IN_PROGRESS)
            logger.info(
                "Dispatched job",
                extra={"job_id": job.job_id, "worker_id": worker.worker_id, "host": worker.host},
            )
            return OUTCOME_DISPATCHED

        return await self._handle_retry(job)

    async def _handle_retry(self, job: Job) -> str:
        """Apply retry bookkeeping after a failed dispatch."""
        updated = await self._store.record_failed_attempt(job.job_id, self.max_retries)
        if updated is None:
            return OUTCOME_SKIPPED

        if updated.status == JobStatus.FAILED:
            logger.warning(
                "Job exceeded max retries, marking FAILED",
                extra={"job_id": job.job_id, "max_retries": self.max_retries},
            )
            return OUTCOME_FAILED

        logger.info(
            "Job scheduled for retry",
            extra={
                "job_id": job.job_id,
                "attempt": updated.retry_count,
                "max_retries": self.max_retries,
            },
        )
        return OUTCOME_RETRY

    @staticmethod
    def _tally(result: CycleResult, outcome: str) -> None:
        if outcome == OUTCOME_DISPATCHED:
            result.dispatched += 1
        elif outcome == OUTCOME_RETRY:
            result.retried += 1
        elif outcome == OUTCOME_FAILED:
            result.failed += 1
        else:
            result.skipped += 1
