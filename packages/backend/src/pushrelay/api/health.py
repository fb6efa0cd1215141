"""Health check endpoint.

Learn: Reports the server, credential database, Redis and Firebase.
Redis is optional (single-process mode works without it), so only the
database and push delivery decide between "healthy" and "degraded".
"""

from fastapi import APIRouter, Depends

from pushrelay import __version__
from pushrelay.config import settings
from pushrelay.db.models import now_ms
from pushrelay.realtime.pubsub import get_redis, redis_available
from pushrelay.relay.service import RelayService, get_relay

router = APIRouter()


@router.get("/health")
async def health_check(relay: RelayService = Depends(get_relay)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await relay.directory.ping()
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    if not settings.redis_enabled:
        checks["redis"] = "disabled"
    elif not redis_available():
        checks["redis"] = "unavailable"
    else:
        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {e}"

    firebase = relay.push.enabled
    status = "healthy" if checks["database"] == "ok" and firebase else "degraded"

    return {
        "status": status,
        **checks,
        "firebase": firebase,
        "push": {
            "sent": relay.push.stats.sent,
            "skipped": relay.push.stats.skipped,
            "failed": relay.push.stats.failed,
            "in_flight": relay.push.in_flight,
        },
        "queues": {
            "identities": len(relay.queue),
        },
        "timestamp": now_ms(),
    }
