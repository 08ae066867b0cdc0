"""
Fixtures for API integration tests.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from jobdispatch.api.main import create_app
from jobdispatch.bootstrap import Components, build_components
from jobdispatch.config import Settings


@pytest.fixture
def components(store, registry, metrics, make_dispatcher) -> Components:
    """Wire components with background loops disabled and a fake dispatcher."""
    return build_components(
        settings=Settings(_env_file=None, scheduler_enabled=False),
        store=store,
        registry=registry,
        dispatcher=make_dispatcher(result=True),
        metrics=metrics,
    )


@pytest.fixture
def app(components: Components) -> FastAPI:
    """Create the application around the test components."""
    return create_app(components)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async test client. The lifespan is not run."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
