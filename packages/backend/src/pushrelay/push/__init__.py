"""Push delivery — Firebase transport and the best-effort dispatcher."""

from .dispatcher import PushDispatcher, PushStats
from .transport import (
    FirebasePushTransport,
    PushDeliveryError,
    PushTransport,
    load_firebase_transport,
)

__all__ = [
    "FirebasePushTransport",
    "PushDeliveryError",
    "PushDispatcher",
    "PushStats",
    "PushTransport",
    "load_firebase_transport",
]
