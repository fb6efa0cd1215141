"""Connection hub — which sockets are listening on which channel.

Learn: A channel name *is* a recipient identity. A socket attached to
"alice" receives every frame broadcast for alice while it stays
connected. One socket may listen on several channels and a channel may
have several sockets (same user on two devices).

Sending to a socket that has gone away fails; that socket is detached
and the rest of the fan-out carries on.
"""

import asyncio
from collections import defaultdict
from typing import Any

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()


class ConnectionHub:
    """In-process registry of attached WebSocket listeners."""

    def __init__(self):
        self._listeners: dict[str, set[WebSocket]] = defaultdict(set)

    def attach(self, channel: str, websocket: WebSocket) -> None:
        self._listeners[channel].add(websocket)
        logger.info(
            "hub.attached",
            channel=channel,
            listeners=len(self._listeners[channel]),
        )

    def detach(self, channel: str, websocket: WebSocket) -> None:
        listeners = self._listeners.get(channel)
        if not listeners:
            return
        listeners.discard(websocket)
        if not listeners:
            del self._listeners[channel]
        logger.info("hub.detached", channel=channel)

    def detach_all(self, websocket: WebSocket) -> list[str]:
        """Remove a socket from every channel. Returns the channels it left."""
        channels = [ch for ch, socks in self._listeners.items() if websocket in socks]
        for channel in channels:
            self.detach(channel, websocket)
        return channels

    def listener_count(self, channel: str) -> int:
        return len(self._listeners.get(channel, ()))

    def channels(self) -> list[str]:
        return list(self._listeners)

    async def deliver_local(self, channel: str, frame: dict[str, Any]) -> int:
        """Send a frame to every socket on channel. Returns how many got it."""
        listeners = list(self._listeners.get(channel, ()))
        if not listeners:
            logger.debug("hub.no_listeners", channel=channel)
            return 0

        results = await asyncio.gather(
            *(ws.send_json(frame) for ws in listeners),
            return_exceptions=True,
        )

        reached = 0
        for ws, result in zip(listeners, results):
            if isinstance(result, Exception):
                logger.warning(
                    "hub.send_failed",
                    channel=channel,
                    error=str(result) or type(result).__name__,
                )
                self.detach_all(ws)
            else:
                reached += 1
        return reached
