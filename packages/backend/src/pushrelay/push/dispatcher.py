"""Push dispatcher — best-effort FCM nudge for every accepted message.

Learn: Push is a side channel. The queue is the record of what a
recipient is owed; push only tells the device "something arrived".
So the dispatcher:

- never blocks the router (dispatch() schedules a task and returns)
- never raises to the router (every failure is logged and dropped)
- never retries (one attempt per message)

A missing Firebase setup or a user with no registered token is a normal
condition, logged at info level, not an error.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from pushrelay.background import BackgroundTasks
from pushrelay.credentials import CredentialDirectory
from pushrelay.push.transport import PushTransport
from pushrelay.schemas.message import RelayMessage

logger = structlog.get_logger()


@dataclass
class PushStats:
    """Runtime counters for the health endpoint."""
    sent: int = 0
    skipped: int = 0
    failed: int = 0


class PushDispatcher:
    """Looks up a recipient's token and submits a data-only push."""

    def __init__(
        self,
        directory: CredentialDirectory,
        transport: Optional[PushTransport] = None,
    ):
        self.directory = directory
        self.transport = transport
        self.stats = PushStats()
        self._tasks = BackgroundTasks("push")

    @property
    def enabled(self) -> bool:
        return self.transport is not None

    def dispatch(self, identity: str, message: RelayMessage) -> None:
        """Schedule a push for identity and return immediately."""
        self._tasks.spawn(self.deliver(identity, message))

    async def deliver(self, identity: str, message: RelayMessage) -> bool:
        """One push attempt. Returns True if the push service accepted it."""
        if self.transport is None:
            self.stats.skipped += 1
            logger.info("push.skipped", identity=identity, reason="not_initialized")
            return False

        try:
            token = await self.directory.lookup(identity)
            if token is None:
                self.stats.skipped += 1
                logger.info("push.no_token", identity=identity)
                return False

            message_id = await self.transport.send(
                token, message.to_push_data(identity)
            )
        except Exception as e:
            self.stats.failed += 1
            logger.warning(
                "push.failed",
                identity=identity,
                event_name=message.event,
                error=str(e),
            )
            return False

        self.stats.sent += 1
        logger.info("push.sent", identity=identity, message_id=message_id)
        return True

    async def drain(self) -> None:
        """Wait for in-flight pushes (shutdown, tests)."""
        await self._tasks.drain()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)
