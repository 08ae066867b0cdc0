"""
Health check routes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import Response

from jobdispatch import __version__
from jobdispatch.api.dependencies import AppComponents
from jobdispatch.types.api import HealthResponse

router = APIRouter(tags=["Health"])


def _state(running: bool) -> str:
    return "running" if running else "stopped"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Report the state of the scheduling loop and liveness monitor.",
)
async def health_check(components: AppComponents) -> HealthResponse:
    """
    Perform a health check.

    The service is "healthy" when both background loops run, or when
    scheduling is disabled by configuration; otherwise "degraded".
    """
    scheduler_running = components.scheduler.is_running
    monitor_running = components.monitor.is_running
    healthy = (scheduler_running and monitor_running) or not components.settings.scheduler_enabled

    return HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        scheduler=_state(scheduler_running),
        liveness_monitor=_state(monitor_running),
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(components: AppComponents) -> dict:
    """
    Kubernetes readiness probe endpoint.

    Returns:
        Ready status.
    """
    return {"ready": not components.executor.is_shutdown}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """
    Kubernetes liveness probe endpoint.

    Returns:
        Alive status.
    """
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics(components: AppComponents) -> Response:
    """
    Expose Prometheus metrics.

    Returns:
        Prometheus-formatted metrics.
    """
    metrics_collector = components.metrics
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
