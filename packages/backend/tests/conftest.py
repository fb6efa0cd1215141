"""Test fixtures — an isolated relay per test.

Learn: Each test gets:
1. A fresh in-memory SQLite credential directory (StaticPool keeps the
   single connection alive, so every session sees the same database)
2. A RecordingPushTransport instead of Firebase. It remembers what
   would have been sent, or raises when told to
3. A RelayService wired from those, and an app built around it so the
   lifespan never touches Redis, Firebase or tokens.db

No Redis is involved anywhere: live broadcasts use the in-process hub.
"""

from typing import Any, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from pushrelay.db.engine import init_db
from pushrelay.main import create_app
from pushrelay.relay.service import RelayService


class RecordingPushTransport:
    """PushTransport fake that captures sends."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.sent: list[tuple[str, dict[str, str]]] = []
        self.fail_with = fail_with

    async def send(self, token: str, data: dict[str, str]) -> str:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append((token, data))
        return f"projects/test/messages/{len(self.sent)}"


class FakeSocket:
    """Stands in for a WebSocket attached to the hub."""

    def __init__(self, fail: bool = False):
        self.frames: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(data)


class MemoryDirectory:
    """Credential directory held in a dict (for tests without a database)."""

    def __init__(self, tokens: Optional[dict[str, str]] = None):
        self.tokens = dict(tokens or {})

    async def lookup(self, user_id: str) -> Optional[str]:
        return self.tokens.get(user_id)


@pytest.fixture()
def make_socket():
    """Factory for FakeSocket listeners."""
    return FakeSocket


@pytest.fixture()
def memory_directory():
    return MemoryDirectory()


@pytest.fixture()
def push_transport():
    return RecordingPushTransport()


@pytest_asyncio.fixture()
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def relay(session_factory, push_transport):
    service = RelayService.build(session_factory, push_transport=push_transport)
    try:
        yield service
    finally:
        await service.drain_background()


@pytest_asyncio.fixture()
async def client(relay):
    """HTTP client for an app that uses the test relay."""
    app = create_app(relay=relay)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
