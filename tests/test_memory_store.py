"""InMemoryStore honours the same contract as RedisStore."""

import asyncio

import pytest

from dinostroids_api.errors import StoreError


@pytest.mark.asyncio
async def test_values_are_copied(store):
    rows = [{"initials": "ABC"}]
    await store.set("board", rows)
    rows.append({"initials": "XYZ"})

    fetched = await store.get("board")
    fetched.append({"initials": "QQQ"})

    assert await store.get("board") == [{"initials": "ABC"}]


@pytest.mark.asyncio
async def test_incr_treats_absent_as_zero(store):
    assert await store.incr("counter") == 1
    assert await store.incr("counter") == 2
    assert await store.get("counter") == 2


@pytest.mark.asyncio
async def test_incr_on_non_integer(store):
    await store.set("counter", "many")

    with pytest.raises(StoreError):
        await store.incr("counter")


@pytest.mark.asyncio
async def test_set_rejects_unserializable_values(store):
    with pytest.raises(StoreError):
        await store.set("key", object())


@pytest.mark.asyncio
async def test_lock_times_out_while_held(store):
    async with store.lock("board:lock", timeout=1):
        with pytest.raises(StoreError):
            async with store.lock("board:lock", timeout=0.01):
                pass

    # Released after the block
    async with store.lock("board:lock", timeout=0.01):
        pass


@pytest.mark.asyncio
async def test_lock_serializes_tasks(store):
    order = []

    async def worker(name):
        async with store.lock("board:lock", timeout=1):
            order.append(f"{name}-start")
            await asyncio.sleep(0.01)
            order.append(f"{name}-end")

    await asyncio.gather(worker("a"), worker("b"))

    assert order == ["a-start", "a-end", "b-start", "b-end"]
