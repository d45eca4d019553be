# app/core/locks.py

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable

StockKey = tuple[str, str]


class StockLockRegistry:
    """In-process mutual exclusion keyed by (item_id, branch_id).

    Every read-check-write of a stock row runs inside ``hold()`` so that two
    confirmations (or a confirmation and a direct movement) on the same
    stock record cannot interleave between the availability check and the
    write. Keys are always acquired in sorted order.

    A key's lock lives only while someone holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: dict[StockKey, asyncio.Lock] = {}
        self._users: dict[StockKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: StockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _checkin(self, key: StockKey) -> None:
        remaining = self._users.get(key, 1) - 1
        if remaining:
            self._users[key] = remaining
        else:
            self._users.pop(key, None)
            self._locks.pop(key, None)

    @asynccontextmanager
    async def hold(self, keys: Iterable[StockKey]) -> AsyncIterator[None]:
        ordered = sorted(set(keys))
        locks = [self._checkout(key) for key in ordered]
        acquired: list[asyncio.Lock] = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in ordered:
                self._checkin(key)

    def reset(self) -> None:
        # Locks bind to the loop they first wait on
        self._locks.clear()
        self._users.clear()


stock_locks = StockLockRegistry()
