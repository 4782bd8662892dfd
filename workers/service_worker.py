"""
MateLuxy service worker (served as /service-worker.js).

Purpose:
- install: pre-cache the static shell, skip waiting
- activate: drop stale caches, claim open pages
- push: turn a push message into a system notification and a page message
- notificationclick: focus/navigate an agent panel window or open a new one
- sync: poll new property requests and notify about them

The worker runs as its own asyncio task and owns its state. The outside world
reaches it only through `dispatch(event)` (inbound queue) and it reaches pages
only through `client.post_message(...)`.
"""
import asyncio
import logging
from typing import Any, Optional, Tuple

import httpx

from browser.events import (
    ActivateEvent,
    Event,
    InstallEvent,
    NotificationClickEvent,
    PushEvent,
    SyncEvent,
)
from browser.service_worker import WorkerScope
from config.settings import settings
from core.exceptions import BackendError, PushError
from models.notification import NotificationOptions, NotificationPayload, PageMessage
from models.presence import PropertyRequestsSync

logger = logging.getLogger(__name__)

SYNC_TITLE = "New Property Requests"

_STOP = None


class ServiceWorker:
    """Worker task: one handler invocation per inbound event, in arrival order."""

    def __init__(self, scope: WorkerScope):
        self.scope = scope
        self.cache_name = settings.CACHE_NAME
        self.static_assets = list(settings.STATIC_ASSETS)
        self.inbox: "asyncio.Queue[Optional[Tuple[Event, asyncio.Future]]]" = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self.handled = 0
        self.failed = 0

    # ---------------------- task lifecycle ---------------------- #

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="service-worker")

    async def stop(self) -> None:
        if self._task is None:
            return
        await self.inbox.put(_STOP)
        await self._task
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def dispatch(self, event: Event) -> Any:
        """Queue an event and wait until its handler (and all work it extends to) is done."""
        if not self.running:
            self.start()
        future = asyncio.get_running_loop().create_future()
        await self.inbox.put((event, future))
        return await future

    async def run(self) -> None:
        logger.info("Service worker started")
        while True:
            item = await self.inbox.get()
            if item is _STOP:
                break
            event, future = item
            try:
                result = await self.handle(event)
                self.handled += 1
                if not future.done():
                    future.set_result(result)
            except Exception as e:
                self.failed += 1
                logger.exception("Unhandled error in '%s' handler", event.type)
                if not future.done():
                    future.set_exception(e)
        logger.info("Service worker stopped. Handled: %s, Failed: %s", self.handled, self.failed)

    async def handle(self, event: Event) -> Any:
        handlers = {
            "install": self.on_install,
            "activate": self.on_activate,
            "push": self.on_push,
            "notificationclick": self.on_notification_click,
            "sync": self.on_sync,
        }
        handler = handlers.get(event.type)
        if handler is None:
            logger.debug("Ignoring '%s' event", event.type)
            return None
        return await handler(event)

    # ---------------------- lifecycle events ---------------------- #

    async def on_install(self, event: InstallEvent) -> None:
        await self.scope.skip_waiting()
        logger.info("Service Worker installed")
        try:
            cache = await self.scope.caches.open(self.cache_name)
            await cache.add_all(self.static_assets)
        except Exception as e:
            logger.error("Pre-caching failed: %s", e)

    async def on_activate(self, event: ActivateEvent) -> None:
        logger.info("Service Worker activated")
        for name in await self.scope.caches.keys():
            if name != self.cache_name:
                logger.info("Service Worker: Clearing old cache: %s", name)
                await self.scope.caches.delete(name)
        await self.scope.clients.claim()

    # ---------------------- push ---------------------- #

    async def on_push(self, event: PushEvent):
        logger.info("Push notification received")
        payload = NotificationPayload.from_push_data(event.data)
        options = NotificationOptions.from_payload(payload)
        try:
            shown = await self.scope.registration.show_notification(payload.title, options)
        except PushError as e:
            logger.error("Could not show notification %r: %s", payload.title, e)
            shown = None

        message = PageMessage(title=payload.title, body=payload.body, data=payload.data)
        for client in await self.scope.clients.match_all(type="window"):
            await client.post_message(message.to_json(), source=self)
        return shown

    async def on_notification_click(self, event: NotificationClickEvent):
        logger.info("Notification click received: action=%r", event.action)
        notification = event.notification
        notification.close()

        if event.action == "close":
            return None

        url = notification.data.url or settings.NOTIFICATION_DEFAULT_URL
        for client in await self.scope.clients.match_all(type="window"):
            if settings.AGENT_PANEL_SEGMENT in client.url:
                await client.focus()
                await client.navigate(url)
                return client
        return await self.scope.clients.open_window(url)

    # ---------------------- background sync ---------------------- #

    async def on_sync(self, event: SyncEvent):
        logger.info("Background sync event: %s", event.tag)
        if event.tag == settings.SYNC_TAG:
            return await self.sync_property_requests()
        return None

    async def sync_property_requests(self) -> Optional[dict]:
        try:
            resp = await self.scope.http.get(
                "/api/property-requests/sync", headers={"Content-Type": "application/json"}
            )
            if not resp.is_success:
                raise BackendError("Failed to sync property requests", resp.status_code)
            data = resp.json()
            synced = PropertyRequestsSync.model_validate(data)
            if synced.new_requests:
                count = len(synced.new_requests)
                options = NotificationOptions(
                    body=f"You have {count} new property requests.",
                    icon=settings.NOTIFICATION_ICON,
                    badge=settings.NOTIFICATION_ICON,
                )
                await self.scope.registration.show_notification(SYNC_TITLE, options)
            return data
        except (httpx.HTTPError, PushError, ValueError) as e:
            logger.error("Error syncing property requests: %s", e)
            return None
