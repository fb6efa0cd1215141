"""Fire-and-forget task bookkeeping.

Learn: asyncio only keeps a weak reference to tasks made with
create_task(), so a task nobody holds can be garbage-collected mid-flight.
BackgroundTasks keeps a strong reference until each task finishes,
logs anything that escaped it, and lets shutdown (and tests) wait for
whatever is still in flight.
"""

import asyncio
from typing import Coroutine

import structlog

logger = structlog.get_logger()


class BackgroundTasks:
    """A set of in-flight tasks that nobody awaits individually."""

    def __init__(self, name: str):
        self.name = name
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "background.task_failed",
                group=self.name,
                error=repr(exc),
            )

    async def drain(self) -> None:
        """Wait for every task spawned so far, including ones they spawn."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)
