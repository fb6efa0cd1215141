"""Rate limiting middleware — Redis fixed window per IP per minute.

Learn: Counter keys look like "pushrelay:rl:{ip}:{bucket}:{minute}".
Token registration gets its own, stricter bucket: it is the only write
an unauthenticated caller can make to persistent state.

Without Redis (tests, single-box dev) requests pass straight through.
WebSocket traffic never reaches this middleware (HTTP scope only).
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pushrelay.realtime.pubsub import get_redis, redis_available

TOKEN_WRITE_PATH = "/api/v1/tokens"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP request budget backed by Redis INCR."""

    def __init__(self, app, default_rpm: int = 300, token_rpm: int = 30):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.token_rpm = token_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        if not redis_available():
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        is_token_write = (
            request.method == "POST" and request.url.path == TOKEN_WRITE_PATH
        )
        rpm = self.token_rpm if is_token_write else self.default_rpm
        bucket = "tokens" if is_token_write else "api"
        window = int(time.time() // 60)
        key = f"pushrelay:rl:{client_ip}:{bucket}:{window}"

        try:
            redis = get_redis()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception:
            # Redis hiccup: let the request through
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
