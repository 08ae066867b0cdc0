"""
HTTP dispatch client.

Pushes a job to a worker's execute endpoint with a bounded
retry-with-backoff policy. The caller only ever sees a boolean; transport
errors, timeouts and non-2xx responses are all reported as ``False``.
"""

import asyncio
import logging
import time

import httpx

from jobdispatch.config import Settings
from jobdispatch.constants import (
    DEFAULT_DISPATCH_PATH,
    DEFAULT_DISPATCH_TIMEOUT_SECONDS,
    SPAN_DISPATCH_JOB,
)
from jobdispatch.observability.metrics import MetricsCollector, get_metrics
from jobdispatch.observability.tracing import get_tracer
from jobdispatch.types.job import Job

logger = logging.getLogger(__name__)


class DispatchClient:
    """
    Delivers jobs to workers over HTTP.

    Each call to ``dispatch`` makes up to ``max_attempts`` POST requests,
    each bounded by ``timeout_seconds``. Between attempts it sleeps
    ``backoff_seconds * backoff_multiplier ** (attempt - 1)``. The call may
    therefore block for roughly ``max_attempts * timeout_seconds`` plus the
    backoff delays.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        backoff_multiplier: float = 2.0,
        path: str = DEFAULT_DISPATCH_PATH,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the dispatch client.

        Args:
            client: HTTP client to use. One is created (and owned) if omitted.
            timeout_seconds: Per-attempt timeout.
            max_attempts: Attempts per dispatch, at least 1.
            backoff_seconds: Delay before the second attempt.
            backoff_multiplier: Growth factor of the delay per attempt.
            path: Endpoint path appended to the worker address.
            metrics: Metrics collector. Uses the global one if omitted.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()
        self.timeout_seconds = timeout_seconds
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.backoff_multiplier = backoff_multiplier
        self.path = path if path.startswith("/") else f"/{path}"
        self._metrics = metrics or get_metrics()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        metrics: MetricsCollector | None = None,
    ) -> "DispatchClient":
        """Build a client from application settings."""
        return cls(
            client=client,
            timeout_seconds=settings.dispatch_timeout_ms / 1000,
            max_attempts=settings.dispatch_max_attempts,
            backoff_seconds=settings.dispatch_backoff_ms / 1000,
            backoff_multiplier=settings.dispatch_backoff_multiplier,
            path=settings.dispatch_path,
            metrics=metrics,
        )

    def build_url(self, worker_address: str) -> str:
        """Execute endpoint for a worker address; bare hosts get ``http://``."""
        base = worker_address.rstrip("/")
        if "://" not in base:
            base = f"http://{base}"
        return f"{base}{self.path}"

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        return self.backoff_seconds * (self.backoff_multiplier ** (attempt - 1))

    async def dispatch(self, job: Job, worker_address: str) -> bool:
        """
        Deliver a job to a worker.

        Args:
            job: The job to send.
            worker_address: Worker base address, e.g. http://worker1.local:8080.

        Returns:
            True if the worker acknowledged with a 2xx response within the
            attempt budget, False otherwise. Never raises.
        """
        url = self.build_url(worker_address)
        body = job.to_wire()

        with get_tracer().start_as_current_span(SPAN_DISPATCH_JOB) as span:
            span.set_attribute("job_id", job.job_id)
            span.set_attribute("job_type", job.type)
            span.set_attribute("url", url)

            for attempt in range(1, self.max_attempts + 1):
                if await self._attempt(job, url, body, attempt):
                    span.set_attribute("attempts", attempt)
                    span.set_attribute("delivered", True)
                    return True

                if attempt < self.max_attempts:
                    delay = self.backoff_delay(attempt)
                    if delay > 0:
                        await asyncio.sleep(delay)

            span.set_attribute("attempts", self.max_attempts)
            span.set_attribute("delivered", False)

        logger.warning(
            "Job dispatch failed after retries",
            extra={"job_id": job.job_id, "url": url, "attempts": self.max_attempts},
        )
        return False

    async def _attempt(self, job: Job, url: str, body: dict, attempt: int) -> bool:
        """Make one POST. Returns whether it was acknowledged."""
        start_time = time.monotonic()
        result = "error"

        try:
            response = await self._client.post(url, json=body, timeout=self.timeout_seconds)
        except httpx.TimeoutException:
            result = "timeout"
            logger.info(
                "Dispatch attempt timed out",
                extra={"job_id": job.job_id, "url": url, "attempt": attempt},
            )
            return False
        except httpx.HTTPError as e:
            logger.info(
                f"Dispatch attempt failed: {e}",
                extra={"job_id": job.job_id, "url": url, "attempt": attempt},
            )
            return False
        except Exception as e:
            logger.exception(
                "Unexpected error during dispatch attempt",
                extra={"job_id": job.job_id, "url": url, "attempt": attempt, "error": str(e)},
            )
            return False
        else:
            if response.is_success:
                result = "success"
                return True

            result = "rejected"
            logger.info(
                "Worker rejected job",
                extra={
                    "job_id": job.job_id,
                    "url": url,
                    "attempt": attempt,
                    "status_code": response.status_code,
                },
            )
            return False
        finally:
            self._metrics.record_dispatch_attempt(result, time.monotonic() - start_time)

    async def aclose(self) -> None:
        """Close the HTTP client if this dispatcher created it."""
        if self._owns_client:
            await self._client.aclose()
