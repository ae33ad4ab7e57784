"""
Games played counter.

The counter is cosmetic ("arcade machines played" on the start screen), so
the read path favours always showing a number over accuracy: a missing key
is seeded with a non-zero display value and a store failure falls back to
that same value instead of erroring.
"""

import logging

from dinostroids_api.config import settings
from dinostroids_api.errors import StoreError
from dinostroids_api.models import CounterIncrement, CounterReading
from dinostroids_api.storage.base import KeyValueStore

logger = logging.getLogger(__name__)


class CounterService:
    """Increment and read a single integer counter key."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str | None = None,
        fallback: int | None = None,
    ):
        self.store = store
        self.key = key or settings.games_played_key
        self.fallback = settings.games_played_fallback if fallback is None else fallback

    async def increment(self) -> CounterIncrement:
        """
        Atomically add one game to the counter.

        The previous value is read separately and is only informative: under
        concurrent increments it may not be ``new_count - 1``.

        Raises:
            StoreError: If the store is unavailable
        """
        previous = await self.store.get(self.key)
        logger.info(f"[COUNTER] Current value before incrementing: {previous}")

        new_count = await self.store.incr(self.key)
        logger.info(f"[COUNTER] Incremented count from {previous} to {new_count}")

        if not isinstance(previous, int):
            previous = None
        return CounterIncrement(previous_count=previous, new_count=new_count)

    async def read(self) -> CounterReading:
        """
        Return the current count.

        An absent key is initialized to the fallback value and persisted, so
        repeated reads agree. On store failure the fallback is returned
        without persisting and the reading carries the error.
        """
        try:
            count = await self.store.get(self.key)
            if count is None:
                logger.info(f"[COUNTER] Initializing {self.key} to {self.fallback}")
                await self.store.set(self.key, self.fallback)
                count = self.fallback
            try:
                count = int(count)
            except (TypeError, ValueError) as e:
                raise StoreError(f"Counter {self.key} holds a non-integer value: {count!r}") from e
        except StoreError as e:
            logger.error(f"[COUNTER] Failed to read {self.key}: {e}")
            return CounterReading(count=self.fallback, error=str(e))

        return CounterReading(count=count)
