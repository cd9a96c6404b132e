"""Integration-test fixtures.

The app runs against the in-memory gateway and storage, swapped in per test
so every test starts from an empty document set and no open sessions.
"""

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mk_auth.jwt_handler import create_access_token
from src.mk_dashboard.application.service import shutdown_registry
from src.mk_gateway.application.service import set_document_gateway
from src.mk_gateway.infrastructure.memory import InMemoryDocumentGateway
from src.mk_storage.application.service import set_object_storage
from src.mk_storage.infrastructure.memory import InMemoryObjectStorage
from tests.factories import SELLER_ID


@pytest_asyncio.fixture
async def backends() -> tuple[InMemoryDocumentGateway, InMemoryObjectStorage]:
    gateway = InMemoryDocumentGateway()
    storage = InMemoryObjectStorage(base_url="https://cdn.test/media")
    set_document_gateway(gateway)
    set_object_storage(storage)
    yield gateway, storage
    await shutdown_registry()
    set_document_gateway(None)
    set_object_storage(None)


@pytest_asyncio.fixture
async def client(backends) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seller_client(client: AsyncClient) -> AsyncClient:
    """Client carrying a Bearer token for SELLER_ID."""
    token = create_access_token(SELLER_ID, "Jane Seller")
    client.headers.update({"Authorization": f"Bearer {token}"})
    return client
