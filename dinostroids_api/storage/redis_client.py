"""
Redis client for counter and leaderboard storage.

System Design Concept:
    Managed serverless KV products (Vercel KV, Upstash) speak the Redis
    protocol. Values are stored as JSON strings so the leaderboard list
    round-trips intact, while the counter stays a plain integer string that
    Redis INCR can operate on.

Simulates:
    A managed Redis endpoint shared by every function instance.

Simplifications:
    - Single Redis endpoint, no replicas
    - No retries: every RedisError becomes a StoreError immediately

Race Condition Handling:
    INCR is atomic on the server. The leaderboard's read-modify-write is
    not; when serialization is switched on it runs under a Redis lock
    (SET NX with expiry) keyed on the leaderboard key.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as redis
from redis.exceptions import RedisError

from dinostroids_api.config import settings
from dinostroids_api.errors import StoreError
from dinostroids_api.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class RedisStore(KeyValueStore):
    """
    Async Redis-backed implementation of the store contract.

    The client is created once per process and reused across requests.
    """

    def __init__(self, client: redis.Redis | None = None):
        self._client: redis.Redis | None = client

    def _build_client(self) -> redis.Redis:
        if settings.redis_url:
            return redis.from_url(settings.redis_url, decode_responses=True)
        return redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password if settings.redis_password else None,
            decode_responses=True,
        )

    async def connect(self):
        """Create the Redis client."""
        if self._client is None:
            self._client = self._build_client()
            if settings.redis_url:
                logger.info("[REDIS] Connected via REDIS_URL")
            else:
                logger.info(f"[REDIS] Connected to {settings.redis_host}:{settings.redis_port}")

    async def disconnect(self):
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("[REDIS] Disconnected")

    @property
    def client(self) -> redis.Redis:
        # Function instances may serve a request before the lifespan hook ran
        if self._client is None:
            self._client = self._build_client()
        return self._client

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self.client.get(key)
        except RedisError as e:
            logger.error(f"[REDIS] GET {key} failed: {e}")
            raise StoreError(str(e)) from e

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Value for {key} is not valid JSON") from e

    async def set(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Value for {key} is not JSON-serializable: {e}") from e

        try:
            await self.client.set(key, payload)
        except RedisError as e:
            logger.error(f"[REDIS] SET {key} failed: {e}")
            raise StoreError(str(e)) from e

    async def incr(self, key: str) -> int:
        """
        Increment counter by 1 (Redis INCR).

        Redis initializes an absent key to 0 before incrementing.
        """
        try:
            return int(await self.client.incr(key))
        except RedisError as e:
            logger.error(f"[REDIS] INCR {key} failed: {e}")
            raise StoreError(str(e)) from e

    async def ping(self) -> None:
        try:
            await self.client.ping()
        except RedisError as e:
            raise StoreError(str(e)) from e

    @asynccontextmanager
    async def lock(self, name: str, timeout: float) -> AsyncIterator[None]:
        """
        Hold a Redis lock for the duration of the block.

        The lock expires after ``timeout`` seconds so a crashed function
        instance can't wedge the leaderboard.
        """
        lock = self.client.lock(name, timeout=timeout, blocking_timeout=timeout)
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            raise StoreError(str(e)) from e
        if not acquired:
            raise StoreError(f"Timed out waiting for lock {name}")

        logger.debug(f"[REDIS] Acquired lock {name}")
        try:
            yield
        finally:
            try:
                await lock.release()
            except RedisError as e:
                # Expired mid-section; the write already happened
                logger.warning(f"[REDIS] Releasing lock {name} failed: {e}")


# Global Redis store instance
redis_store = RedisStore()
