"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from jobdispatch.constants import (
    METRIC_API_REQUESTS,
    METRIC_CYCLE_DURATION,
    METRIC_DISPATCH_ATTEMPT_LATENCY,
    METRIC_DISPATCH_OUTCOMES,
    METRIC_JOBS_SUBMITTED,
    METRIC_PENDING_JOBS,
    METRIC_WORKERS,
    METRIC_WORKERS_STALE,
    WorkerStatus,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the job dispatcher.

    Collects metrics for:
    - Job submissions and dispatch outcomes
    - Dispatch attempt latency
    - Dispatch cycle duration and pending depth
    - Worker liveness
    - API requests
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.jobs_submitted = Counter(
            METRIC_JOBS_SUBMITTED,
            "Total number of jobs submitted",
            ["job_type"],
            registry=self._registry,
        )

        # One of dispatched / retry / failed / skipped per job per cycle
        self.dispatch_outcomes = Counter(
            METRIC_DISPATCH_OUTCOMES,
            "Outcome of each job handled by a dispatch cycle",
            ["job_type", "outcome"],
            registry=self._registry,
        )

        self.dispatch_attempt_latency = Histogram(
            METRIC_DISPATCH_ATTEMPT_LATENCY,
            "Latency of a single HTTP dispatch attempt in seconds",
            ["result"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self._registry,
        )

        self.cycle_duration = Histogram(
            METRIC_CYCLE_DURATION,
            "Dispatch cycle duration in seconds",
            buckets=(0.01, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

        self.pending_jobs = Gauge(
            METRIC_PENDING_JOBS,
            "Number of QUEUED or RETRY jobs at the start of the last cycle",
            registry=self._registry,
        )

        self.workers = Gauge(
            METRIC_WORKERS,
            "Number of registered workers",
            ["status"],
            registry=self._registry,
        )

        self.workers_stale = Counter(
            METRIC_WORKERS_STALE,
            "Total number of ACTIVE -> STALE worker transitions",
            registry=self._registry,
        )

        self.api_requests = Counter(
            METRIC_API_REQUESTS,
            "Total number of API requests",
            ["method", "endpoint", "status"],
            registry=self._registry,
        )

    def record_job_submitted(self, job_type: str) -> None:
        """Record a job submission."""
        self.jobs_submitted.labels(job_type=job_type).inc()

    def record_dispatch_outcome(self, job_type: str, outcome: str) -> None:
        """Record what a cycle did with one job."""
        self.dispatch_outcomes.labels(job_type=job_type, outcome=outcome).inc()

    def record_dispatch_attempt(self, result: str, duration_seconds: float) -> None:
        """Record one HTTP attempt made by the dispatch client."""
        self.dispatch_attempt_latency.labels(result=result).observe(duration_seconds)

    def record_cycle(self, pending: int, duration_seconds: float) -> None:
        """Record a completed dispatch cycle."""
        self.pending_jobs.set(pending)
        self.cycle_duration.observe(duration_seconds)

    def record_workers_stale(self, count: int) -> None:
        """Record workers demoted by a liveness sweep."""
        if count > 0:
            self.workers_stale.inc(count)

    def update_worker_counts(self, counts: dict[WorkerStatus, int]) -> None:
        """Update the worker gauge for every status."""
        for status in WorkerStatus:
            self.workers.labels(status=status.value).set(counts.get(status, 0))

    def record_api_request(self, method: str, endpoint: str, status: int) -> None:
        """Record an API request."""
        self.api_requests.labels(
            method=method,
            endpoint=endpoint,
            status=str(status),
        ).inc()

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
