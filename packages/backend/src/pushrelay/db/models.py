"""SQLAlchemy ORM models.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
One table: user_tokens, keyed by the recipient identity. There is no
history; every registration overwrites the row for that user.
"""

import time

from sqlalchemy import BigInteger, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def now_ms() -> int:
    """Milliseconds since epoch, the relay's timestamp unit."""
    return int(time.time() * 1000)


class UserToken(Base):
    """Push credential for one user: the device and its FCM token.

    Learn: user_id is exactly the string senders address messages to.
    No normalisation: "Alice" and "alice" are different users.
    """

    __tablename__ = "user_tokens"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    device_id: Mapped[str] = mapped_column(String(255), nullable=False)
    fcm_token: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_ms)

    def __repr__(self) -> str:
        return f"<UserToken user_id={self.user_id!r} device_id={self.device_id!r}>"
