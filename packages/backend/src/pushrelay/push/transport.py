"""Push transport — hand a data payload to a device via FCM.

Learn: firebase_admin's messaging.send() is a blocking HTTP call, so it
runs in a worker thread (asyncio.to_thread) and the event loop keeps
serving sockets while Google answers.

Messages are data-only (no `notification` block): the receiving app
decides whether and how to show anything.

If the service-account file is missing or unreadable, load_firebase_transport()
returns None and the relay runs without push. That is a degraded mode, not a
startup failure.
"""

import asyncio
import os
from typing import Optional, Protocol

import firebase_admin
import structlog
from firebase_admin import credentials, exceptions, messaging

logger = structlog.get_logger()

FIREBASE_APP_NAME = "pushrelay"


class PushDeliveryError(Exception):
    """Raised when the push service rejects or cannot take a message."""


class PushTransport(Protocol):
    """Anything that can deliver a data payload to a device token."""

    async def send(self, token: str, data: dict[str, str]) -> str: ...


class FirebasePushTransport:
    """PushTransport backed by the Firebase Admin SDK."""

    def __init__(self, app: firebase_admin.App):
        self.app = app

    async def send(self, token: str, data: dict[str, str]) -> str:
        """Send a data-only message. Returns the FCM message id."""
        message = messaging.Message(token=token, data=data)
        try:
            return await asyncio.to_thread(messaging.send, message, app=self.app)
        except (exceptions.FirebaseError, ValueError) as e:
            raise PushDeliveryError(str(e)) from e


def load_firebase_transport(service_account_path: str) -> Optional[FirebasePushTransport]:
    """Initialize the Firebase app from a service-account JSON file.

    Returns None (and logs why) when push cannot be enabled.
    """
    if not os.path.isfile(service_account_path):
        logger.warning(
            "push.firebase_unavailable",
            reason="service account file not found",
            path=service_account_path,
        )
        return None

    try:
        app = firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        try:
            cred = credentials.Certificate(service_account_path)
            app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
        except (ValueError, OSError) as e:
            logger.warning(
                "push.firebase_unavailable",
                reason=str(e),
                path=service_account_path,
            )
            return None

    logger.info("push.firebase_initialized", project_id=app.project_id)
    return FirebasePushTransport(app)
