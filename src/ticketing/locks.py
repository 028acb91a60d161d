"""Per-event mutual exclusion for membership mutations.

A membership change and the ticket resync that follows it must not
interleave with another change on the same event. Each event id gets its
own ``asyncio.Lock``; operations spanning several events acquire their
locks in sorted id order so two such operations cannot deadlock.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from uuid import UUID


class EventLockRegistry:
    """Hands out one asyncio.Lock per event id."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    def lock_for(self, event_id: UUID) -> asyncio.Lock:
        """Return the lock guarding ``event_id``, creating it on first use."""
        lock = self._locks.get(event_id)
        if lock is None:
            lock = self._locks[event_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, event_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for a single event."""
        async with self.lock_for(event_id):
            yield

    @asynccontextmanager
    async def hold_many(self, event_ids: Iterable[UUID]) -> AsyncIterator[None]:
        """Hold the locks for several events, acquired in sorted order."""
        async with AsyncExitStack() as stack:
            for event_id in sorted(set(event_ids), key=str):
                await stack.enter_async_context(self.lock_for(event_id))
            yield

    def discard(self, event_id: UUID) -> None:
        """Forget the lock of a deleted event if nobody holds it."""
        lock = self._locks.get(event_id)
        if lock is not None and not lock.locked():
            del self._locks[event_id]

    def __len__(self) -> int:
        return len(self._locks)
