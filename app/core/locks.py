"""Per-key asyncio locks.

Used to serialize the overlap-check-then-insert of a booking per master
inside one process. Locks are held in a WeakValueDictionary so an entry
disappears as soon as nobody is waiting on it.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import Hashable


class KeyedLocks:
    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _get(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._get(key)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


master_booking_locks = KeyedLocks()
