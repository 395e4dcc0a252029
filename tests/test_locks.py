import asyncio

import pytest

from arena.core.errors import ConcurrencyConflictError
from arena.core.locks import KeyedLocks

pytestmark = pytest.mark.anyio


async def test_same_key_is_serialized():
    locks = KeyedLocks()
    trace = []

    async def worker(name):
        async with locks.hold("k"):
            trace.append(f"{name}-in")
            await asyncio.sleep(0.01)
            trace.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"), worker("c"))
    # Every "in" is immediately followed by its own "out"
    for i in range(0, len(trace), 2):
        assert trace[i].split("-")[0] == trace[i + 1].split("-")[0]
    assert len(locks) == 0


async def test_different_keys_do_not_contend():
    locks = KeyedLocks()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold("a"):
            inside.set()
            await asyncio.sleep(0.05)

    task = asyncio.create_task(holder())
    await inside.wait()
    async with locks.hold("b", timeout=0.01):
        assert len(locks) == 2
    await task
    assert len(locks) == 0


async def test_timeout_raises_conflict_and_cleans_up():
    locks = KeyedLocks()
    async with locks.hold("k"):
        with pytest.raises(ConcurrencyConflictError):
            async with locks.hold("k", timeout=0.01):
                pass
        assert len(locks) == 1
    assert len(locks) == 0


async def test_key_is_usable_again_after_timeouts():
    locks = KeyedLocks()
    release = asyncio.Event()
    inside = asyncio.Event()

    async def holder():
        async with locks.hold("k"):
            inside.set()
            await release.wait()

    task = asyncio.create_task(holder())
    await inside.wait()
    for _ in range(5):
        with pytest.raises(ConcurrencyConflictError):
            async with locks.hold("k", timeout=0.001):
                pass
    release.set()
    await task

    async with locks.hold("k", timeout=0.1):
        assert len(locks) == 1
    assert len(locks) == 0
