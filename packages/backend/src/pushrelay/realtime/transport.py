"""Live transport — best-effort broadcast of a message on a channel.

Learn: broadcast() is what the router calls. It returns immediately;
the actual send happens in a background task. Two paths:

1. Redis connected → PUBLISH the frame on pushrelay:live:{channel}.
   run_redis_relay() (one per process) PSUBSCRIBEs and hands frames to
   the local hub, so every worker reaches its own sockets. If the
   subscription connection drops it is logged and re-established.
2. No Redis → hand the frame to the local hub directly.

Frames for one channel go out in the order broadcast() was called
(per-channel lock, FIFO). Nothing reports back: zero listeners is a
normal outcome, and a failure is logged, never raised.

Outbound frame shape: {"channel": "<identity>", "message": {...}}
"""

import asyncio
import json
import weakref
from typing import Any

import structlog

from pushrelay.background import BackgroundTasks
from pushrelay.realtime import pubsub
from pushrelay.realtime.hub import ConnectionHub
from pushrelay.schemas.message import RelayMessage

logger = structlog.get_logger()


def build_frame(channel: str, message: RelayMessage) -> dict[str, Any]:
    return {"channel": channel, "message": message.to_wire()}


class LiveTransport:
    """Fan-out of message frames to attached listeners."""

    def __init__(self, hub: ConnectionHub):
        self.hub = hub
        self._tasks = BackgroundTasks("live")
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, channel: str) -> asyncio.Lock:
        lock = self._locks.get(channel)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[channel] = lock
        return lock

    def broadcast(self, channel: str, message: RelayMessage) -> None:
        """Schedule delivery of message to channel's listeners."""
        frame = build_frame(channel, message)
        self._tasks.spawn(self._fanout(channel, frame, self._lock_for(channel)))

    async def _fanout(self, channel: str, frame: dict[str, Any], lock: asyncio.Lock) -> None:
        async with lock:
            try:
                if pubsub.redis_available():
                    receivers = await pubsub.get_redis().publish(
                        pubsub.live_channel(channel), json.dumps(frame, default=str)
                    )
                    logger.debug("live.published", channel=channel, subscribers=receivers)
                else:
                    reached = await self.hub.deliver_local(channel, frame)
                    logger.info("live.emitted", channel=channel, listeners=reached)
            except Exception as e:
                logger.warning("live.broadcast_failed", channel=channel, error=str(e))

    async def run_redis_relay(self, retry_delay: float = 1.0) -> None:
        """Forward frames published by any process to local sockets.

        Runs until cancelled. When the pub/sub connection drops, the
        failure is logged and the subscription is re-established after
        retry_delay seconds.
        """
        while True:
            try:
                await self._relay_from_redis()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("live.redis_relay_failed", error=str(e), retry_in=retry_delay)
            await asyncio.sleep(retry_delay)

    async def _relay_from_redis(self) -> None:
        ps = pubsub.get_redis().pubsub()
        try:
            await ps.psubscribe(f"{pubsub.LIVE_CHANNEL_PREFIX}*")
            logger.info("live.redis_relay_started")
            async for item in ps.listen():
                if item["type"] != "pmessage":
                    continue
                channel = item["channel"][len(pubsub.LIVE_CHANNEL_PREFIX):]
                try:
                    frame = json.loads(item["data"])
                except json.JSONDecodeError:
                    logger.warning("live.bad_frame", channel=channel)
                    continue
                reached = await self.hub.deliver_local(channel, frame)
                logger.info("live.emitted", channel=channel, listeners=reached)
        finally:
            # Closing drops the subscription with the connection
            await ps.aclose()
            logger.info("live.redis_relay_stopped")

    async def drain(self) -> None:
        """Wait for in-flight broadcasts (shutdown, tests)."""
        await self._tasks.drain()
