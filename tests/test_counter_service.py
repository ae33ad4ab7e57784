"""Games played counter: increment and lazily-initialized reads."""

import pytest

from dinostroids_api.errors import StoreError
from dinostroids_api.services.counter_service import CounterService


@pytest.mark.asyncio
async def test_increment_from_absent_key(store):
    counter = CounterService(store, key="gamesPlayed")

    first = await counter.increment()
    assert first.previous_count is None
    assert first.new_count == 1

    second = await counter.increment()
    assert second.previous_count == 1
    assert second.new_count == 2


@pytest.mark.asyncio
async def test_read_initializes_absent_key_to_fallback(store):
    counter = CounterService(store, key="gamesPlayed", fallback=50)

    reading = await counter.read()
    assert reading.count == 50
    assert not reading.degraded
    assert await store.get("gamesPlayed") == 50

    # Idempotent: the persisted value is read back unchanged
    assert (await counter.read()).count == 50


@pytest.mark.asyncio
async def test_increment_after_initializing_read(store):
    counter = CounterService(store, key="gamesPlayed", fallback=50)
    await counter.read()

    result = await counter.increment()
    assert result.previous_count == 50
    assert result.new_count == 51


@pytest.mark.asyncio
async def test_read_falls_back_on_store_failure(failing_store):
    counter = CounterService(failing_store, fallback=50)

    reading = await counter.read()
    assert reading.count == 50
    assert reading.degraded
    assert "connection refused" in reading.error


@pytest.mark.asyncio
async def test_read_treats_non_integer_value_as_store_failure(store):
    await store.set("gamesPlayed", "lots")
    counter = CounterService(store, key="gamesPlayed", fallback=50)

    reading = await counter.read()
    assert reading.count == 50
    assert reading.degraded
    # Not overwritten
    assert await store.get("gamesPlayed") == "lots"


@pytest.mark.asyncio
async def test_increment_propagates_store_failure(failing_store):
    counter = CounterService(failing_store)

    with pytest.raises(StoreError):
        await counter.increment()
