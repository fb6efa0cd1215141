"""Redis connection — optional cross-process fan-out for live frames.

Learn: Redis pub/sub is fire-and-forget. If no one is listening, the frame
is lost. That is exactly the live-delivery contract: a broadcast reaches
whoever is attached right now, and the recipient queue covers the rest.

Channel naming: pushrelay:live:{identity}
Every relay process PSUBSCRIBEs pushrelay:live:* and forwards frames to
the sockets attached to it, so a live frame reaches a recipient connected
to any worker. Only live frames cross processes: each worker keeps its
own recipient queues, so queueing and drain assume a single worker.

When Redis is down (or disabled) the relay works single-process: frames
go straight to the local hub.
"""

from typing import Optional

import redis.asyncio as aioredis

from pushrelay.config import settings

LIVE_CHANNEL_PREFIX = "pushrelay:live:"

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


def live_channel(identity: str) -> str:
    return f"{LIVE_CHANNEL_PREFIX}{identity}"


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection before publishing it
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def redis_available() -> bool:
    return _redis is not None
