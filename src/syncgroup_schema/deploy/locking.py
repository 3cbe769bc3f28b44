"""Per-sync-group mutual exclusion within one process.

The service does not serialize schema operations on a sync group, so two
phases running concurrently against the same group (e.g. from a service
embedding this package) must queue up.
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from syncgroup_schema.clients.base import SyncGroupRef

_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


@asynccontextmanager
async def sync_group_lock(ref: SyncGroupRef) -> AsyncIterator[None]:
    """Hold the lock for *ref* for the duration of the block."""
    lock = _locks.get(ref.key)
    if lock is None:
        lock = asyncio.Lock()
        _locks[ref.key] = lock
    async with lock:
        yield
