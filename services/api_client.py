"""
HTTP client for the MateLuxy backend push / presence endpoints.

Endpoints:
- GET  /api/push/vapid-public-key      -> text body, URL-safe base64 key
- POST /api/push/save-subscription     -> subscription JSON
- POST /api/push/delete-subscription   -> subscription JSON
- PUT  /api/{admin_id}/activity        -> no body
- PUT  /api/{admin_id}/offline         -> no body

Cookies set by the backend are kept on the client and sent back on every call
(fetch `credentials: 'include'`). Transport errors (httpx.HTTPError) propagate
to the caller, which decides whether they are soft failures.
"""
import logging
from typing import Dict, Optional

import httpx

from config.settings import settings
from core.exceptions import BackendError
from models.subscription import PushSubscription

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {"Content-Type": "application/json", "Cache-Control": "no-cache"}


class BackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cookies: Optional[Dict[str, str]] = None,
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
            cookies=cookies,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ---------------------- push ---------------------- #

    async def get_vapid_public_key(self) -> str:
        resp = await self._client.get("/api/push/vapid-public-key")
        if not resp.is_success:
            raise BackendError(f"Failed to get VAPID key from server: {resp.status_code}", resp.status_code)
        return resp.text.strip()

    async def save_subscription(self, subscription: PushSubscription) -> bool:
        resp = await self._client.post(
            "/api/push/save-subscription", headers=NO_CACHE_HEADERS, json=subscription.to_json()
        )
        if not resp.is_success:
            logger.warning("save-subscription returned %s", resp.status_code)
        return resp.is_success

    async def delete_subscription(self, subscription: PushSubscription) -> bool:
        resp = await self._client.post(
            "/api/push/delete-subscription", headers=NO_CACHE_HEADERS, json=subscription.to_json()
        )
        if not resp.is_success:
            logger.warning("delete-subscription returned %s", resp.status_code)
        return resp.is_success

    # ---------------------- presence ---------------------- #

    async def update_admin_activity(self, admin_id: str) -> bool:
        resp = await self._client.put(f"/api/{admin_id}/activity")
        return resp.is_success

    async def set_admin_offline(self, admin_id: str) -> bool:
        resp = await self._client.put(f"/api/{admin_id}/offline")
        return resp.is_success
