"""
FastAPI application entry point.

The API process hosts the whole dispatcher: the HTTP boundary used by
workers and submitters, plus the scheduling loop and liveness monitor
running in the background of the same event loop.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware

from jobdispatch import __version__
from jobdispatch.api.middleware import create_metrics_middleware
from jobdispatch.api.routes import health_router, jobs_router, workers_router
from jobdispatch.bootstrap import Components, build_components
from jobdispatch.config import get_settings
from jobdispatch.observability.logging import setup_logging
from jobdispatch.observability.metrics import setup_metrics
from jobdispatch.observability.tracing import instrument_fastapi, setup_tracing

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Starts the background loops on startup and drains them on shutdown.
    """
    # Startup
    setup_logging()
    setup_metrics()
    setup_tracing()

    components: Components = app.state.components
    components.start()

    logger.info("Application started")

    yield

    # Shutdown
    await components.shutdown()
    logger.info("Application shutdown")


def create_app(components: Components | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        components: Pre-wired components. Built from settings if omitted.

    Returns:
        FastAPI: The configured application instance.
    """
    app = FastAPI(
        title="Job Dispatcher API",
        description="Capability-matched job dispatch to a pool of HTTP workers",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.components = components or build_components()

    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=create_metrics_middleware(),
    )

    app.include_router(health_router)
    app.include_router(workers_router)
    app.include_router(jobs_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()

    uvicorn.run(
        "jobdispatch.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
