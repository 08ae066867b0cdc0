"""
Worker registration and heartbeat routes.

This is the inbound boundary remote workers use to join the pool and to
report liveness.
"""

import logging

from fastapi import APIRouter, HTTPException, status

from jobdispatch.api.dependencies import AppComponents
from jobdispatch.constants import API_V1_PREFIX
from jobdispatch.errors import WorkerNotFoundError
from jobdispatch.types.api import (
    HeartbeatResponse,
    RegisterWorkerRequest,
    WorkerListResponse,
    WorkerResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/workers", tags=["Workers"])


@router.post(
    "/register",
    response_model=WorkerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a worker",
    description="Register or re-register a worker with its capabilities.",
)
async def register_worker(
    request: RegisterWorkerRequest,
    components: AppComponents,
) -> WorkerResponse:
    """
    Register a worker. Re-registering an id replaces the previous record.

    Args:
        request: Worker registration request.
        components: Wired application components.

    Returns:
        WorkerResponse for the ACTIVE worker.
    """
    worker = await components.registry.register_worker(
        request.worker_id,
        request.host,
        *request.capabilities,
    )
    return WorkerResponse.from_worker(worker)


@router.post(
    "/{worker_id}/heartbeat",
    response_model=HeartbeatResponse,
    summary="Worker heartbeat",
    description="Refresh a worker's liveness. Revives STALE workers.",
)
async def heartbeat(worker_id: str, components: AppComponents) -> HeartbeatResponse:
    """
    Record a heartbeat.

    Raises:
        HTTPException: If the worker is not registered.
    """
    if not await components.registry.update_heartbeat(worker_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not registered",
        )

    worker = await components.registry.get_worker(worker_id)
    return HeartbeatResponse(
        worker_id=worker.worker_id,
        status=worker.status,
        last_heartbeat=worker.last_heartbeat,
    )


@router.get(
    "",
    response_model=WorkerListResponse,
    summary="List workers",
)
async def list_workers(components: AppComponents) -> WorkerListResponse:
    """List every registered worker ordered by id."""
    workers = sorted(await components.registry.list_workers(), key=lambda w: w.worker_id)
    return WorkerListResponse(
        workers=[WorkerResponse.from_worker(worker) for worker in workers],
        total=len(workers),
    )


@router.get(
    "/{worker_id}",
    response_model=WorkerResponse,
    summary="Get worker details",
)
async def get_worker(worker_id: str, components: AppComponents) -> WorkerResponse:
    """
    Get a worker by id.

    Raises:
        HTTPException: If the worker is not registered.
    """
    try:
        worker = await components.registry.get_worker(worker_id)
    except WorkerNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Worker not found",
        )

    return WorkerResponse.from_worker(worker)
