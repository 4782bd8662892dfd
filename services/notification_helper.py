"""
Page-side notification helper for the agent panel.

On page start it re-establishes the push subscription when the agent opted in
earlier (permission granted + pushNotificationsEnabled), and while the page is
controlled by the service worker it turns NOTIFICATION messages from the worker
into toasts with a "View" action.
"""
import logging
from typing import Optional

from browser.events import MessageEvent
from browser.page import Page
from models.notification import PageMessage
from services.push_notifications import (
    PushSubscriptionManager,
    get_notification_permission_status,
    is_push_notification_supported,
)
from services.settings_store import LocalSettingsStore, is_push_enabled
from services.toast import Toast, ToastAction, Toaster

logger = logging.getLogger(__name__)


class NotificationHelper:
    def __init__(
        self,
        page: Page,
        manager: PushSubscriptionManager,
        store: LocalSettingsStore,
        toaster: Optional[Toaster] = None,
    ):
        self.page = page
        self.manager = manager
        self.store = store
        self.toaster = toaster or Toaster()
        self.initialized = False
        self._listening = False

    async def initialize(self) -> None:
        if self.initialized:
            return
        browser = self.manager.browser
        try:
            if not is_push_notification_supported(browser):
                logger.info("Push notifications are not supported in this browser")
                return

            if get_notification_permission_status(browser) == "granted" and is_push_enabled(self.store):
                result = await self.manager.ensure_subscribed()
                if not result.success:
                    logger.warning("Failed to reestablish push notification subscription: %s", result.message)

            if self.page.controller is not None:
                self.page.messages.add_event_listener("message", self.handle_service_worker_message)
                self._listening = True

            self.initialized = True
        except Exception as e:
            logger.error("Error initializing notifications: %s", e)

    def dispose(self) -> None:
        if self._listening:
            self.page.messages.remove_event_listener("message", self.handle_service_worker_message)
            self._listening = False

    async def handle_service_worker_message(self, event: MessageEvent) -> Optional[Toast]:
        message = PageMessage.parse(event.data)
        if message is None:
            return None

        url = message.data.url

        async def view() -> None:
            if url:
                await self.page.navigate(url)

        return self.toaster.show(message.title, description=message.body, action=ToastAction("View", view))
