"""API-flow fixtures.

The app runs against a fresh in-memory store per test; ASGITransport does not
run the lifespan, so no background sweeper is started.
"""

from collections.abc import AsyncIterator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config.settings import settings
from src.main import app
from src.sf_store.infrastructure.memory_store import InMemoryKeyValueStore
from tests.integration.api_helpers import bearer, register_and_login


@pytest_asyncio.fixture
async def client(store: InMemoryKeyValueStore) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    resp = await client.post("/api/v1/auth/admin-login", json={"password": settings.ADMIN_PASSWORD})
    return bearer(resp.json()["data"]["access_token"])


@pytest_asyncio.fixture
async def alice(client: AsyncClient) -> tuple[str, dict[str, str]]:
    return await register_and_login(client, "alice")
