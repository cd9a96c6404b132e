"""Shared test fixtures.

Settings are read at import time, so the environment is prepared before any
project module is imported.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ["GATEWAY_BACKEND"] = "memory"
os.environ["STORAGE_BACKEND"] = "memory"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402

from src.mk_auth.identity import Identity  # noqa: E402
from src.mk_dashboard.application.controller import DashboardController  # noqa: E402
from src.mk_gateway.infrastructure.memory import InMemoryDocumentGateway  # noqa: E402
from src.mk_storage.infrastructure.memory import InMemoryObjectStorage  # noqa: E402
from tests.factories import NOW, SELLER_ID  # noqa: E402


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def gateway(clock) -> InMemoryDocumentGateway:
    return InMemoryDocumentGateway(clock=clock)


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage(base_url="https://cdn.test/media")


@pytest.fixture
def seller() -> Identity:
    return Identity(user_id=SELLER_ID, display_name="Jane Seller")


@pytest.fixture
async def controller(seller, gateway, storage, clock) -> DashboardController:
    """A started dashboard session over whatever the test seeded beforehand."""
    ctl = DashboardController(seller, gateway, storage, clock=clock)
    await ctl.start()
    yield ctl
    await ctl.stop()


