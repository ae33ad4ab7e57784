"""
Key-value store contract for the counter and leaderboard.

System Design Concept:
    The store holds the only shared state across every serverless
    invocation. Services depend on this abstraction, not on Redis, so the
    same business logic runs against the production store and an
    in-memory fake in tests.

Contract:
    - get(key)  -> JSON value, or None if the key is absent
    - set(key, value) -> unconditional overwrite (last writer wins)
    - incr(key) -> new integer, atomic, absent counts as 0
    - ping()    -> raises StoreError if unreachable
    - lock(name, timeout) -> async context manager serializing a critical section

Every implementation raises StoreError for any backend failure.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from dinostroids_api.errors import StoreError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Abstract async key-value store."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve a JSON value by key."""
        pass

    @abstractmethod
    async def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value, overwriting any existing one."""
        pass

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment an integer key and return the new value."""
        pass

    @abstractmethod
    async def ping(self) -> None:
        """Check the store is reachable."""
        pass

    @abstractmethod
    def lock(self, name: str, timeout: float) -> Any:
        """
        Return an async context manager holding an exclusive lock on ``name``.

        Raises StoreError on entry if the lock can't be acquired within
        ``timeout`` seconds.
        """
        pass


class InMemoryStore(KeyValueStore):
    """
    Dict-based store for tests and local runs.

    Simplifications:
        - No persistence (data lost on restart)
        - Single process (locks are per-process asyncio locks)

    Values are kept JSON-encoded so callers never share mutable state with
    the store, the same as a networked store.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key} is not JSON-serializable: {e}") from e

    async def incr(self, key: str) -> int:
        current = await self.get(key)
        if current is None:
            current = 0
        if isinstance(current, bool) or not isinstance(current, int):
            raise StoreError(f"Value for {key} is not an integer")
        new_value = current + 1
        self._data[key] = json.dumps(new_value)
        return new_value

    async def ping(self) -> None:
        return None

    @asynccontextmanager
    async def lock(self, name: str, timeout: float) -> AsyncIterator[None]:
        lock = self._locks.setdefault(name, asyncio.Lock())
        try:
            await asyncio.wait_for(lock.acquire(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(f"Timed out waiting for lock {name}") from e
        try:
            yield
        finally:
            lock.release()
