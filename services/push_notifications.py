"""
Push notification lifecycle for the agent / admin panels.

Purpose:
- Feature-detect the platform, read and request notification permission
- Register the service worker
- Ensure exactly one push subscription exists and hand it to the backend
- Revoke the subscription (backend best-effort, local mandatory)

Every public operation returns a result object or None; platform and network
failures are logged and folded into the result, never raised.
"""
import asyncio
import logging
from typing import Optional

import httpx

from browser.profile import BrowserProfile
from browser.service_worker import ServiceWorkerRegistration
from config.settings import settings
from core.codec import url_base64_to_bytes
from core.exceptions import PushError
from models.subscription import PermissionResult, RevokeResult, SubscribeResult
from services.api_client import BackendClient

logger = logging.getLogger(__name__)

NOT_SAVED_WARNING = "Subscription created but not saved on server"


def is_push_notification_supported(browser: BrowserProfile) -> bool:
    return browser.service_worker is not None and browser.push_manager is not None


def get_notification_permission_status(browser: BrowserProfile) -> str:
    if not is_push_notification_supported(browser):
        return "unsupported"
    return browser.permission.state


async def request_notification_permission(browser: BrowserProfile) -> PermissionResult:
    if not is_push_notification_supported(browser):
        logger.info("Push notifications not supported")
        return PermissionResult(supported=False, granted=False)
    try:
        permission = await browser.permission.request_permission()
        return PermissionResult(supported=True, granted=permission == "granted")
    except Exception as e:
        logger.error("Error requesting notification permission: %s", e)
        return PermissionResult(supported=True, granted=False, error=str(e))


async def register_service_worker(
    browser: BrowserProfile, script_path: Optional[str] = None
) -> Optional[ServiceWorkerRegistration]:
    """Register the worker script for the whole origin. None means the feature is unavailable."""
    if not is_push_notification_supported(browser):
        return None
    script_path = script_path or settings.SERVICE_WORKER_PATH
    try:
        registration = await browser.service_worker.register(script_path, scope="/")
        logger.info("Service Worker registered successfully: %s", registration)
        return registration
    except Exception as e:
        logger.error("Service Worker registration failed: %s", e)
        return None


class PushSubscriptionManager:
    """
    Keeps the browser's push subscription and the backend copy in step.

    ensure_subscribed() calls are serialised so two concurrent callers can never
    both observe "no subscription" and create two.
    """

    def __init__(self, browser: BrowserProfile, api: BackendClient):
        self.browser = browser
        self.api = api
        self._in_flight = asyncio.Lock()

    async def _registration(self) -> Optional[ServiceWorkerRegistration]:
        registration = await self.browser.service_worker.get_registration()
        if registration is None or registration.active is None:
            registration = await register_service_worker(self.browser)
            if registration is None:
                return None
        return await self.browser.service_worker.ready()

    async def ensure_subscribed(self) -> SubscribeResult:
        if not is_push_notification_supported(self.browser):
            return SubscribeResult(success=False, message="Push notifications not supported")

        async with self._in_flight:
            try:
                return await self._ensure_subscribed()
            except Exception as e:
                logger.error("Error subscribing to push notifications: %s", e)
                return SubscribeResult(
                    success=False, message="Error subscribing to push notifications", error=str(e)
                )

    async def _ensure_subscribed(self) -> SubscribeResult:
        if self.browser.permission.state != "granted":
            permission = await request_notification_permission(self.browser)
            if not permission.granted:
                return SubscribeResult(success=False, message="Notification permission denied")

        registration = await self._registration()
        if registration is None:
            return SubscribeResult(success=False, message="Service worker registration failed")

        push_manager = registration.push_manager
        subscription = await push_manager.get_subscription()
        if subscription is None:
            try:
                vapid_public_key = await self.api.get_vapid_public_key()
                application_server_key = url_base64_to_bytes(vapid_public_key)
                subscription = await push_manager.subscribe(
                    user_visible_only=True, application_server_key=application_server_key
                )
            except (httpx.HTTPError, PushError, ValueError) as e:
                logger.error("Error subscribing to push notifications: %s", e)
                return SubscribeResult(
                    success=False, message=f"Error subscribing to push notifications: {e}"
                )
        else:
            logger.debug("Reusing existing push subscription %s", subscription.endpoint)

        # the local subscription stays valid whatever the backend answers
        try:
            saved = await self.api.save_subscription(subscription)
        except httpx.HTTPError as e:
            logger.warning("Error saving subscription on server: %s", e)
            saved = False
        if not saved:
            logger.warning("Failed to save subscription on server")
            return SubscribeResult(
                success=True,
                subscription=subscription,
                warning=NOT_SAVED_WARNING,
                message="Successfully subscribed to push notifications (local only)",
            )

        return SubscribeResult(
            success=True, subscription=subscription, message="Successfully subscribed to push notifications"
        )

    async def revoke_subscription(self) -> RevokeResult:
        if not is_push_notification_supported(self.browser):
            return RevokeResult(success=False, message="Push notifications not supported")

        async with self._in_flight:
            try:
                registration = await self.browser.service_worker.get_registration()
                push_manager = registration.push_manager if registration else self.browser.push_manager
                subscription = await push_manager.get_subscription()
                if subscription is None:
                    return RevokeResult(success=True, message="No subscription found to unsubscribe")

                try:
                    deleted = await self.api.delete_subscription(subscription)
                    if not deleted:
                        logger.warning(
                            "Failed to delete subscription from server, continuing with local unsubscription"
                        )
                except httpx.HTTPError as e:
                    logger.warning(
                        "Error deleting subscription from server, continuing with local unsubscription: %s", e
                    )

                unsubscribed = await push_manager.unsubscribe(subscription)
                return RevokeResult(
                    success=unsubscribed,
                    message=(
                        "Successfully unsubscribed from push notifications"
                        if unsubscribed
                        else "Failed to unsubscribe from push notifications"
                    ),
                )
            except Exception as e:
                logger.error("Error unsubscribing from push notifications: %s", e)
                return RevokeResult(
                    success=False, message="Error unsubscribing from push notifications", error=str(e)
                )
