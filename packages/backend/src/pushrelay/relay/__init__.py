"""Relay core — recipient queue, router, and the service that wires them."""

from .queue import RecipientQueue
from .router import Router
from .service import RelayService, get_relay, get_ws_relay

__all__ = [
    "RecipientQueue",
    "RelayService",
    "Router",
    "get_relay",
    "get_ws_relay",
]
