"""
Component wiring.

Builds the store, registry, dispatch client, executor, scheduler and
liveness monitor from settings and manages their start/stop as one unit.
"""

import logging
from dataclasses import dataclass

from jobdispatch.config import Settings, get_settings
from jobdispatch.dispatcher.client import DispatchClient
from jobdispatch.monitor.main import LivenessMonitor
from jobdispatch.observability.metrics import MetricsCollector, get_metrics
from jobdispatch.registry.base import WorkerRegistry
from jobdispatch.registry.memory import InMemoryWorkerRegistry
from jobdispatch.scheduler.executor import TaskExecutor
from jobdispatch.scheduler.main import JobScheduler
from jobdispatch.store.base import JobStore
from jobdispatch.store.memory import InMemoryJobStore

logger = logging.getLogger(__name__)


@dataclass
class Components:
    """The wired dispatcher components sharing one store and registry."""

    settings: Settings
    store: JobStore
    registry: WorkerRegistry
    dispatcher: DispatchClient
    executor: TaskExecutor
    scheduler: JobScheduler
    monitor: LivenessMonitor
    metrics: MetricsCollector

    def start(self) -> None:
        """Start the scheduling loop and liveness monitor, if enabled."""
        if not self.settings.scheduler_enabled:
            logger.info("Scheduler disabled by configuration; not starting background tasks")
            return

        self.scheduler.start()
        self.monitor.start()

    async def shutdown(self) -> None:
        """Stop background tasks, drain the executor and close the HTTP client."""
        self.scheduler.stop()
        self.monitor.stop()
        await self.executor.shutdown()
        await self.dispatcher.aclose()


def build_components(
    settings: Settings | None = None,
    store: JobStore | None = None,
    registry: WorkerRegistry | None = None,
    dispatcher: DispatchClient | None = None,
    metrics: MetricsCollector | None = None,
) -> Components:
    """
    Wire the dispatcher from settings.

    Any collaborator passed in is used instead of the default in-memory or
    HTTP implementation.

    Args:
        settings: Application settings. Defaults to the cached settings.
        store: Job store override.
        registry: Worker registry override.
        dispatcher: Dispatch client override.
        metrics: Metrics collector override.

    Returns:
        Components: Wired, not yet started.
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics()

    store = store or InMemoryJobStore()
    registry = registry or InMemoryWorkerRegistry()
    dispatcher = dispatcher or DispatchClient.from_settings(settings, metrics=metrics)
    executor = TaskExecutor(
        pool_size=settings.scheduler_pool_size,
        shutdown_await_seconds=settings.scheduler_shutdown_await_ms / 1000,
    )

    scheduler = JobScheduler(
        store=store,
        registry=registry,
        dispatcher=dispatcher,
        executor=executor,
        poll_interval_seconds=settings.scheduler_poll_interval_ms / 1000,
        max_retries=settings.scheduler_max_retries,
        metrics=metrics,
    )
    monitor = LivenessMonitor(
        registry=registry,
        executor=executor,
        heartbeat_timeout_seconds=settings.worker_heartbeat_timeout_ms / 1000,
        interval_seconds=settings.liveness_interval_ms / 1000,
        metrics=metrics,
    )

    return Components(
        settings=settings,
        store=store,
        registry=registry,
        dispatcher=dispatcher,
        executor=executor,
        scheduler=scheduler,
        monitor=monitor,
        metrics=metrics,
    )
