"""
Worker liveness monitor.

Runs periodically, independently of the scheduling loop, and demotes
workers whose last heartbeat is older than the configured timeout. Stale
workers are skipped by capability matching until they heartbeat again.
"""

import logging
from collections import Counter
from datetime import timedelta

from jobdispatch.constants import SPAN_LIVENESS_SWEEP
from jobdispatch.observability.metrics import MetricsCollector, get_metrics
from jobdispatch.observability.tracing import get_tracer
from jobdispatch.registry.base import WorkerRegistry
from jobdispatch.scheduler.executor import ScheduledTask, TaskExecutor

logger = logging.getLogger(__name__)


class LivenessMonitor:
    """
    Periodic stale-worker sweep.

    Each run:
    1. Marks ACTIVE workers with an expired heartbeat STALE
    2. Records the transitions and the worker counts as metrics

    A failing run is logged by the executor and the next one fires as usual.
    """

    def __init__(
        self,
        registry: WorkerRegistry,
        executor: TaskExecutor,
        heartbeat_timeout_seconds: float = 30.0,
        interval_seconds: float = 10.0,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            registry: Worker registry to sweep.
            executor: Executor running the periodic sweep.
            heartbeat_timeout_seconds: Heartbeat age after which a worker is stale.
            interval_seconds: Seconds between sweeps.
            metrics: Metrics collector. Uses the global one if omitted.
        """
        self.timeout = timedelta(seconds=heartbeat_timeout_seconds)
        self.interval = interval_seconds

        self._registry = registry
        self._executor = executor
        self._metrics = metrics or get_metrics()
        self._schedule: ScheduledTask | None = None

    @property
    def is_running(self) -> bool:
        return self._schedule is not None and not self._schedule.cancelled

    def start(self) -> None:
        """Schedule the sweep. Calling it while already running does nothing."""
        if self.is_running:
            logger.warning("LivenessMonitor already started")
            return

        logger.info(
            f"LivenessMonitor starting with interval {self.interval}s",
            extra={"timeout_seconds": self.timeout.total_seconds()},
        )
        self._schedule = self._executor.schedule_at_fixed_rate(
            self.run_once,
            initial_delay=0,
            interval=self.interval,
            name="liveness-sweep",
        )

    def stop(self) -> None:
        """Cancel future sweeps."""
        if self._schedule is None:
            return

        self._schedule.cancel()
        self._schedule = None
        logger.info("LivenessMonitor stopped")

    async def run_once(self) -> list[str]:
        """
        Run a single stale-worker sweep.

        Returns:
            Ids of the workers marked STALE by this sweep.
        """
        logger.debug(
            "Starting stale-worker detection",
            extra={"timeout_seconds": self.timeout.total_seconds()},
        )

        with get_tracer().start_as_current_span(SPAN_LIVENESS_SWEEP) as span:
            demoted = await self._registry.detect_stale_workers(self.timeout)
            span.set_attribute("demoted", len(demoted))

        self._metrics.record_workers_stale(len(demoted))
        workers = await self._registry.list_workers()
        self._metrics.update_worker_counts(Counter(worker.status for worker in workers))

        if demoted:
            logger.info(f"Marked {len(demoted)} workers STALE", extra={"worker_ids": demoted})

        return demoted
