"""Relay message — the unit of transfer between users.

Learn: A message has three required fields:
- event: non-empty name of the application-level event type
- payload: arbitrary structured data, opaque to the relay
- timestamp: creation time (ms since epoch) as supplied by the sender

Anything else the sender puts in the object rides along untouched.
The relay never re-types or rewrites an accepted message: what the
recipient drains is exactly what the sender emitted.
"""

import json
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

REQUIRED_FIELDS = ("event", "payload", "timestamp")


class InvalidMessageError(ValueError):
    """Raised when an inbound message fails validation."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RelayMessage(BaseModel):
    """A validated, immutable relay message."""

    model_config = ConfigDict(extra="allow", frozen=True)

    event: str = Field(..., min_length=1)
    payload: Any
    timestamp: Any

    @field_validator("payload", "timestamp")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    def to_wire(self) -> dict[str, Any]:
        """The message as received, including any extra sender fields."""
        return self.model_dump()

    def to_push_data(self, recipient: str) -> dict[str, str]:
        """Data-only push payload. FCM data values must all be strings."""
        return {
            "recipient": recipient,
            "event": self.event,
            "payload": json.dumps(self.payload, default=str),
            "timestamp": str(self.timestamp),
        }


def parse_message(raw: Any) -> RelayMessage:
    """Validate an untyped inbound message.

    Raises InvalidMessageError with a short reason suitable for logging.
    """
    if not isinstance(raw, Mapping):
        raise InvalidMessageError("not an object")

    missing = [name for name in REQUIRED_FIELDS if raw.get(name) is None]
    if missing:
        raise InvalidMessageError(
            f"missing required fields: {', '.join(missing)}"
        )

    if not isinstance(raw["event"], str) or not raw["event"]:
        raise InvalidMessageError("event must be a non-empty string")

    try:
        return RelayMessage.model_validate(dict(raw))
    except ValidationError as e:
        raise InvalidMessageError(f"invalid message: {e.errors()[0]['msg']}") from e
