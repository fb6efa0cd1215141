"""Push-token API — devices register the FCM token for a user.

Learn: Routes:
- POST /tokens → store or overwrite {userId, deviceId, fcmToken}
- GET /tokens/{user_id} → current record for a user

Error bodies use the {success: false, error} shape the mobile clients
already parse, with 400 for missing fields, 404 for unknown users and
500 when the store itself fails.
"""

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from pushrelay.relay.service import RelayService, get_relay
from pushrelay.schemas.token import TokenRead, TokenSet

logger = structlog.get_logger()
router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


@router.post("/tokens", response_model=TokenRead)
async def set_token(
    body: TokenSet,
    relay: RelayService = Depends(get_relay),
):
    """Store or update the push token for a user."""
    missing = body.missing_fields()
    if missing:
        return _error(400, f"Missing required fields: {', '.join(missing)}")

    try:
        record = await relay.directory.put(body.userId, body.deviceId, body.fcmToken)
    except SQLAlchemyError as e:
        logger.error("api.set_token_failed", user_id=body.userId, error=str(e))
        return _error(500, str(e))

    return TokenRead(
        userId=record.user_id,
        deviceId=record.device_id,
        fcmToken=record.fcm_token,
        updatedAt=record.updated_at,
    )


@router.get("/tokens/{user_id}", response_model=TokenRead)
async def get_token(
    user_id: str,
    relay: RelayService = Depends(get_relay),
):
    """Return the stored push token for a user."""
    try:
        record = await relay.directory.get(user_id)
    except SQLAlchemyError as e:
        logger.error("api.get_token_failed", user_id=user_id, error=str(e))
        return _error(500, str(e))

    if record is None:
        return _error(404, "Token not found for user")

    logger.info("api.token_retrieved", user_id=user_id)
    return TokenRead(
        userId=record.user_id,
        deviceId=record.device_id,
        fcmToken=record.fcm_token,
        updatedAt=record.updated_at,
    )
