"""
Shared fixtures.

No Redis is needed: services and the HTTP app run against InMemoryStore,
which implements the same get/set/incr contract.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from dinostroids_api.api import app, get_store
from dinostroids_api.errors import StoreError
from dinostroids_api.storage.base import InMemoryStore


class FailingStore(InMemoryStore):
    """Store whose every operation fails, like an unreachable Redis."""

    async def get(self, key):
        raise StoreError("connection refused")

    async def set(self, key, value):
        raise StoreError("connection refused")

    async def incr(self, key):
        raise StoreError("connection refused")

    async def ping(self):
        raise StoreError("connection refused")


class SlowReadStore(InMemoryStore):
    """Yields to the event loop after every read so submissions interleave."""

    async def get(self, key):
        value = await super().get(key)
        await asyncio.sleep(0.01)
        return value


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def failing_store():
    return FailingStore()


@pytest.fixture
def slow_store():
    return SlowReadStore()


@pytest.fixture
def client(store):
    """HTTP client wired to a fresh in-memory store."""
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def failing_client(failing_store):
    """HTTP client whose store is down."""
    app.dependency_overrides[get_store] = lambda: failing_store
    yield TestClient(app)
    app.dependency_overrides.clear()
