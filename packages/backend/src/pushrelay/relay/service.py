"""RelayService — one object holding the relay's collaborators.

Learn: The queue, hub, transports, credential directory and router are
built once per application in the lifespan and stored on app.state.
Handlers reach them through the get_relay() dependency, which tests can
override with a relay built around fakes.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request, WebSocket
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pushrelay.credentials import CredentialDirectory
from pushrelay.push.dispatcher import PushDispatcher
from pushrelay.push.transport import PushTransport
from pushrelay.realtime.hub import ConnectionHub
from pushrelay.realtime.transport import LiveTransport
from pushrelay.relay.queue import RecipientQueue
from pushrelay.relay.router import Router


@dataclass
class RelayService:
    queue: RecipientQueue
    hub: ConnectionHub
    live: LiveTransport
    directory: CredentialDirectory
    push: PushDispatcher
    router: Router = field(init=False)

    def __post_init__(self):
        self.router = Router(self.queue, self.live, self.push)

    @classmethod
    def build(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        push_transport: Optional[PushTransport] = None,
        max_messages: int = 0,
    ) -> "RelayService":
        hub = ConnectionHub()
        directory = CredentialDirectory(session_factory)
        return cls(
            queue=RecipientQueue(max_messages=max_messages),
            hub=hub,
            live=LiveTransport(hub),
            directory=directory,
            push=PushDispatcher(directory, push_transport),
        )

    async def drain_background(self) -> None:
        """Wait for every in-flight broadcast and push."""
        await self.live.drain()
        await self.push.drain()


def get_relay(request: Request) -> RelayService:
    """FastAPI dependency: the application's RelayService."""
    return request.app.state.relay


def get_ws_relay(websocket: WebSocket) -> RelayService:
    """Same as get_relay, for WebSocket routes."""
    return websocket.app.state.relay
