"""Credential directory — user identity → current push token.

Learn: The relay core only ever *reads* from here (lookup before a push).
Writes come from devices registering their FCM token through the
/tokens endpoint. One record per user; the latest write wins and
replaces device, token and timestamp together.

Each call opens its own short-lived session from the factory so the
directory can be shared by HTTP handlers and background push tasks
alike without passing sessions around.
"""

from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pushrelay.db.models import UserToken, now_ms

logger = structlog.get_logger()


class CredentialDirectory:
    """Async key-value store of push credentials backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, user_id: str) -> Optional[UserToken]:
        """Full credential record, or None."""
        async with self._session_factory() as db:
            return await db.get(UserToken, user_id)

    async def lookup(self, user_id: str) -> Optional[str]:
        """Current push token for a user, or None."""
        record = await self.get(user_id)
        return record.fcm_token if record else None

    async def put(self, user_id: str, device_id: str, token: str) -> UserToken:
        """Store or overwrite the credential for a user."""
        try:
            record = await self._upsert(user_id, device_id, token)
        except IntegrityError:
            # Lost an insert race with another registration for the same
            # user; the row exists now, so the retry takes the update path.
            record = await self._upsert(user_id, device_id, token)

        logger.info("credentials.token_set", user_id=user_id, device_id=device_id)
        return record

    async def ping(self) -> None:
        """Round-trip to the database; raises if it is unreachable."""
        async with self._session_factory() as db:
            await db.execute(text("SELECT 1"))

    async def _upsert(self, user_id: str, device_id: str, token: str) -> UserToken:
        async with self._session_factory() as db:
            record = await db.get(UserToken, user_id)
            if record is None:
                record = UserToken(user_id=user_id)
                db.add(record)
            record.device_id = device_id
            record.fcm_token = token
            record.updated_at = now_ms()
            await db.commit()
            await db.refresh(record)
            return record
