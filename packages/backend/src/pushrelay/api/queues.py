"""Queue API — look at, and drain, what the relay still holds for a user.

Learn: Routes:
- GET /queues → per-identity sizes (watch for queues nobody drains)
- GET /queues/{identity} → pending messages, untouched
- POST /queues/{identity}/drain → pending messages, and the queue is cleared

The drain here is the HTTP twin of the WebSocket {"type": "drain"} frame:
the response body is the delivery.
"""

from fastapi import APIRouter, Depends

from pushrelay.relay.service import RelayService, get_relay

router = APIRouter()


@router.get("/queues")
async def queue_stats(relay: RelayService = Depends(get_relay)):
    """Sizes of every non-empty recipient queue."""
    return relay.queue.stats()


@router.get("/queues/{identity}")
async def peek_queue(identity: str, relay: RelayService = Depends(get_relay)):
    """Pending messages for identity, oldest first."""
    messages = await relay.router.peek(identity)
    return {
        "identity": identity,
        "count": len(messages),
        "messages": [m.to_wire() for m in messages],
    }


@router.post("/queues/{identity}/drain")
async def drain_queue(identity: str, relay: RelayService = Depends(get_relay)):
    """Return and clear every pending message for identity."""
    messages = await relay.router.handle_drain_request(identity)
    return {
        "identity": identity,
        "count": len(messages),
        "messages": [m.to_wire() for m in messages],
    }
