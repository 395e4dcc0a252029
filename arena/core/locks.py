"""Per-key asyncio locks, created on demand and dropped when nobody holds or waits on them."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

from arena.core.errors import ConcurrencyConflictError


class KeyedLocks:
    def __init__(self):
        # key -> [lock, number of holders + waiters]
        self._locks: dict[Hashable, list] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: Hashable, timeout: float | None = None) -> AsyncIterator[None]:
        """Hold the lock for ``key``, waiting at most ``timeout`` seconds for it."""
        # No await between lookup and refcount increment, so this is atomic on the loop
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        lock = entry[0]
        try:
            try:
                # Cancellation inside Lock.acquire never leaves the lock held
                async with asyncio.timeout(timeout):
                    await lock.acquire()
            except TimeoutError:
                raise ConcurrencyConflictError("Timed out waiting for a concurrent update") from None
            try:
                yield
            finally:
                lock.release()
        finally:
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]
