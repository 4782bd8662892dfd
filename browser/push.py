"""
PushManager: one push subscription per browser profile.
"""
import asyncio
import logging
import secrets
from typing import Optional

from browser.notifications import NotificationPermission
from core.codec import bytes_to_url_base64
from core.exceptions import InvalidStateError, NotAllowedError
from models.subscription import PushSubscription, SubscriptionKeys

logger = logging.getLogger(__name__)

PUSH_SERVICE_URL = "https://fcm.googleapis.com/fcm/send"

# Uncompressed P-256 point: 0x04 || X(32) || Y(32)
APPLICATION_SERVER_KEY_LENGTH = 65


class PushManager:
    def __init__(self, permission: NotificationPermission, push_service_url: str = PUSH_SERVICE_URL):
        self.permission = permission
        self.push_service_url = push_service_url.rstrip("/")
        self._subscription: Optional[PushSubscription] = None
        self._server_key: Optional[bytes] = None
        self.created = 0  # subscriptions ever issued by the push service
        permission.on_revoke(self._invalidate)

    async def get_subscription(self) -> Optional[PushSubscription]:
        await asyncio.sleep(0)
        return self._subscription

    async def subscribe(self, user_visible_only: bool, application_server_key: bytes) -> PushSubscription:
        await asyncio.sleep(0)
        if not user_visible_only:
            raise NotAllowedError("Subscriptions must be userVisibleOnly; silent pushes are not allowed")
        if self.permission.state != "granted":
            raise NotAllowedError("Registration failed - permission denied")
        if len(application_server_key) != APPLICATION_SERVER_KEY_LENGTH or application_server_key[0] != 0x04:
            raise ValueError("applicationServerKey is not a valid P-256 public key")

        if self._subscription is not None:
            if self._server_key != application_server_key:
                raise InvalidStateError("A subscription with a different applicationServerKey already exists")
            return self._subscription

        self._subscription = PushSubscription(
            endpoint=f"{self.push_service_url}/{secrets.token_urlsafe(24)}",
            keys=SubscriptionKeys(
                p256dh=bytes_to_url_base64(b"\x04" + secrets.token_bytes(64)),
                auth=bytes_to_url_base64(secrets.token_bytes(16)),
            ),
        )
        self._server_key = application_server_key
        self.created += 1
        logger.info("Push subscription created: %s", self._subscription.endpoint)
        return self._subscription

    async def unsubscribe(self, subscription: PushSubscription) -> bool:
        await asyncio.sleep(0)
        if self._subscription is None or self._subscription.endpoint != subscription.endpoint:
            return False
        self._subscription = None
        self._server_key = None
        return True

    def _invalidate(self) -> None:
        if self._subscription is not None:
            logger.info("Permission revoked, dropping push subscription %s", self._subscription.endpoint)
        self._subscription = None
        self._server_key = None
