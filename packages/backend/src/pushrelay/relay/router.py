"""Router — entry point for every inbound event.

Learn: For one inbound (recipient, message) pair the router:

1. validates the message (invalid → logged and dropped, nothing changes)
2. appends it to the recipient's queue
3. broadcasts it live on the channel named after the recipient
4. hands it to the push dispatcher, always, whether or not step 3
   reached anybody

Steps 3 and 4 are fire-and-forget and independent: neither waits for,
nor depends on, the other's outcome. The sender never learns whether the
recipient is online.

The router is also the failure boundary. Nothing that goes wrong while
broadcasting or pushing escapes to the caller, and one recipient's
trouble never touches another recipient's state.
"""

from typing import Any, Awaitable, Callable, Optional

import structlog

from pushrelay.push.dispatcher import PushDispatcher
from pushrelay.realtime.transport import LiveTransport
from pushrelay.relay.queue import RecipientQueue
from pushrelay.schemas.message import InvalidMessageError, RelayMessage, parse_message

logger = structlog.get_logger()

Deliver = Callable[[RelayMessage], Awaitable[Any]]


class Router:
    """Drives the queue, live and push paths for inbound events."""

    def __init__(
        self,
        queue: RecipientQueue,
        transport: LiveTransport,
        push: PushDispatcher,
    ):
        self.queue = queue
        self.transport = transport
        self.push = push

    async def handle_inbound(self, identity: str, raw: Any) -> Optional[RelayMessage]:
        """Accept one event for identity. Returns the message, or None if rejected."""
        try:
            message = parse_message(raw)
        except InvalidMessageError as e:
            logger.warning("router.rejected", identity=identity, reason=e.reason)
            return None

        logger.info("router.received", identity=identity, event_name=message.event)

        await self.queue.enqueue(identity, message)

        try:
            self.transport.broadcast(identity, message)
        except Exception:
            logger.exception("router.broadcast_error", identity=identity)

        try:
            self.push.dispatch(identity, message)
        except Exception:
            logger.exception("router.push_error", identity=identity)

        return message

    async def handle_drain_request(
        self,
        identity: str,
        deliver: Optional[Deliver] = None,
    ) -> list[RelayMessage]:
        """Flush identity's queue, delivering each message in FIFO order.

        The queue is cleared as soon as it is read; a delivery failure
        partway through is logged, and the undelivered messages are not
        re-queued.
        """
        messages = await self.queue.drain_and_clear(identity)
        if not messages:
            return []

        logger.info("router.draining", identity=identity, count=len(messages))

        if deliver is not None:
            for delivered, message in enumerate(messages):
                try:
                    await deliver(message)
                except Exception as e:
                    logger.error(
                        "router.drain_delivery_failed",
                        identity=identity,
                        delivered=delivered,
                        undelivered=len(messages) - delivered,
                        error=str(e),
                    )
                    break

        return messages

    async def peek(self, identity: str) -> list[RelayMessage]:
        """Pending messages for identity, without draining."""
        return await self.queue.peek_all(identity)
