"""Pydantic schemas for the push-token endpoints.

Learn: Field names stay camelCase (userId, deviceId, fcmToken) because
the mobile clients already speak that shape. Fields are optional at the
schema level so the route can answer a missing field with the 400
`{success: false, error}` body clients expect, instead of FastAPI's 422.
"""

from typing import Optional

from pydantic import BaseModel, Field


class TokenSet(BaseModel):
    """Device registers (or refreshes) its push token."""
    userId: Optional[str] = Field(None, description="Recipient identity")
    deviceId: Optional[str] = Field(None, description="Device identifier")
    fcmToken: Optional[str] = Field(None, description="FCM registration token")

    def missing_fields(self) -> list[str]:
        return [
            name
            for name in ("userId", "deviceId", "fcmToken")
            if not getattr(self, name)
        ]


class TokenRead(BaseModel):
    """Stored credential record."""
    success: bool = True
    userId: str
    deviceId: str
    fcmToken: str
    updatedAt: Optional[int] = None
