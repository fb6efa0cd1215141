"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown:

- credential database tables
- Redis (optional; enables multi-process live fan-out + rate limiting)
- Firebase (optional; without it push dispatch is a logged no-op)
- the RelayService that every route reaches through app.state.relay

Neither Redis nor Firebase being unavailable stops the relay from starting.
"""

import asyncio
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pushrelay import __version__
from pushrelay.api import api_router
from pushrelay.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    An app built with a ready-made RelayService (tests, embedding) skips the
    wiring and only waits for its background work on the way out.
    """
    preset = getattr(app.state, "relay", None)
    if preset is not None:
        yield
        await preset.drain_background()
        return

    from pushrelay.db.engine import async_session_factory, engine, init_db
    from pushrelay.logconfig import configure_logging
    from pushrelay.push.transport import load_firebase_transport
    from pushrelay.realtime.pubsub import close_redis, init_redis
    from pushrelay.relay.service import RelayService

    configure_logging()
    logger.info(
        "pushrelay.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    await init_db()
    logger.info("pushrelay.database_ready", url=settings.database_url.split("@")[-1])

    redis_up = False
    if settings.redis_enabled:
        try:
            await init_redis()
            redis_up = True
            logger.info("pushrelay.redis_connected", url=settings.redis_url)
        except Exception as e:
            # Redis is optional; single-process live delivery still works
            logger.warning("pushrelay.redis_unavailable", error=str(e))

    push_transport = load_firebase_transport(settings.firebase_service_account_path)
    if push_transport is None:
        logger.warning("pushrelay.push_disabled")

    relay = RelayService.build(
        async_session_factory,
        push_transport=push_transport,
        max_messages=settings.queue_max_messages,
    )
    app.state.relay = relay

    relay_task = None
    if redis_up:
        relay_task = asyncio.create_task(relay.live.run_redis_relay())

    if settings.environment != "development" and "*" in settings.cors_origins:
        logger.warning("pushrelay.cors_wide_open", environment=settings.environment)

    yield

    # Shutdown
    logger.info("pushrelay.shutdown", pending_identities=len(relay.queue))

    await relay.drain_background()

    if relay_task is not None:
        relay_task.cancel()
        try:
            await relay_task
        except asyncio.CancelledError:
            pass

    await close_redis()
    await engine.dispose()


def create_app(relay=None) -> FastAPI:
    """Build and return the FastAPI application.

    Pass a RelayService to use it instead of the one the lifespan builds.
    """
    app = FastAPI(
        title="pushrelay",
        description="Event relay with live WebSocket delivery and FCM push fallback",
        version=__version__,
        lifespan=lifespan,
    )
    if relay is not None:
        app.state.relay = relay

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → RateLimit → CORS → handler

    from pushrelay.middleware.rate_limit import RateLimitMiddleware
    from pushrelay.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        token_rpm=settings.rate_limit_token_rpm,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    from pushrelay.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: pushrelay.main:app)
app = create_app()
