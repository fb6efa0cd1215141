"""Recipient queue — per-identity FIFO of messages still owed to a user.

Learn: Messages sit here from the moment they are accepted until the
recipient explicitly drains. Three rules:

1. Append-only per identity; arrival order is drain order.
2. drain_and_clear() hands back the whole sequence *and* removes the
   entry, so the next enqueue starts a fresh sequence.
3. Enqueue and drain on the same identity are mutually exclusive, but
   unrelated identities never wait on each other (one lock per identity,
   no global lock).

Locks live in a WeakValueDictionary: a lock exists while some coroutine
holds a reference to it and disappears with the last one, so identities
that went quiet don't leave a lock behind.

The queue is process memory only. A restart loses everything, and with
max_messages=0 nothing bounds a recipient that never drains.
"""

import asyncio
import weakref
from collections import deque

import structlog

from pushrelay.schemas.message import RelayMessage

logger = structlog.get_logger()


class RecipientQueue:
    """In-memory per-recipient message buffer."""

    def __init__(self, max_messages: int = 0):
        self.max_messages = max_messages
        self._queues: dict[str, deque[RelayMessage]] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, identity: str) -> asyncio.Lock:
        lock = self._locks.get(identity)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[identity] = lock
        return lock

    async def enqueue(self, identity: str, message: RelayMessage) -> int:
        """Append a message to the tail of identity's queue. Returns its size."""
        lock = self._lock_for(identity)
        async with lock:
            queue = self._queues.get(identity)
            if queue is None:
                queue = self._queues[identity] = deque()
            if self.max_messages and len(queue) >= self.max_messages:
                dropped = queue.popleft()
                logger.warning(
                    "queue.overflow_dropped",
                    identity=identity,
                    limit=self.max_messages,
                    dropped_event=dropped.event,
                )
            queue.append(message)
            size = len(queue)

        logger.info("queue.enqueued", identity=identity, size=size)
        return size

    async def peek_all(self, identity: str) -> list[RelayMessage]:
        """Current contents in FIFO order, without changing anything."""
        lock = self._lock_for(identity)
        async with lock:
            return list(self._queues.get(identity, ()))

    async def drain_and_clear(self, identity: str) -> list[RelayMessage]:
        """Take every queued message for identity and drop the entry."""
        lock = self._lock_for(identity)
        async with lock:
            queue = self._queues.pop(identity, None)

        messages = list(queue) if queue else []
        if messages:
            logger.info("queue.cleared", identity=identity, count=len(messages))
        return messages

    def stats(self) -> dict:
        """Queue sizes for health/introspection."""
        sizes = {identity: len(q) for identity, q in self._queues.items()}
        return {
            "identities": len(sizes),
            "total_messages": sum(sizes.values()),
            "max_messages": self.max_messages,
            "queues": sizes,
        }

    def __len__(self) -> int:
        return len(self._queues)
