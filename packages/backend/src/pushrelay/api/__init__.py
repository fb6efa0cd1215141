"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.
No route requires authentication: identities are opaque strings and
the relay trusts whoever names them.
"""

from fastapi import APIRouter

from pushrelay.api.health import router as health_router
from pushrelay.api.queues import router as queues_router
from pushrelay.api.tokens import router as tokens_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(tokens_router, tags=["tokens"])
api_router.include_router(queues_router, tags=["queues"])
