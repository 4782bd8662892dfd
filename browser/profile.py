"""
BrowserProfile: one browser profile visiting the web app's origin.

Ties together the platform facilities the push and presence flows use:
- permission      -> Notification.permission / requestPermission()
- push_manager    -> registration.pushManager (None when Push API is missing)
- service_worker  -> navigator.serviceWorker (None when service workers are missing)
- caches          -> CacheStorage
- pages           -> open windows of the origin
"""
import logging
from typing import Dict, List, Optional

import httpx

from browser.cache import CacheStorage
from browser.notifications import NotificationPermission, PromptHandler
from browser.page import Page
from browser.push import PUSH_SERVICE_URL, PushManager
from browser.service_worker import ServiceWorkerContainer, WorkerFactory

logger = logging.getLogger(__name__)


def default_worker_factories() -> Dict[str, WorkerFactory]:
    from config.settings import settings
    from workers.service_worker import ServiceWorker

    return {settings.SERVICE_WORKER_PATH: ServiceWorker}


class BrowserProfile:
    def __init__(
        self,
        origin: str = "http://localhost:5173",
        *,
        service_worker_supported: bool = True,
        push_supported: bool = True,
        permission: str = "default",
        prompt_handler: Optional[PromptHandler] = None,
        http: Optional[httpx.AsyncClient] = None,
        worker_factories: Optional[Dict[str, WorkerFactory]] = None,
        push_service_url: str = PUSH_SERVICE_URL,
    ):
        self.origin = origin.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(base_url=self.origin)
        self.permission = NotificationPermission(permission, prompt_handler)
        self.push_manager = PushManager(self.permission, push_service_url) if push_supported else None
        self.caches = CacheStorage(self.http)
        self.pages: List[Page] = []
        if service_worker_supported:
            factories = worker_factories if worker_factories is not None else default_worker_factories()
            self.service_worker: Optional[ServiceWorkerContainer] = ServiceWorkerContainer(self, factories)
        else:
            self.service_worker = None

    def open_page(self, url: str = "/") -> Page:
        page = Page(url, profile=self)
        self.pages.append(page)
        # a page loaded inside an active registration's scope is controlled from the start
        registration = self.service_worker.registration if self.service_worker else None
        if registration is not None and registration.active is not None:
            page.controller = registration.active
        return page

    async def close(self) -> None:
        for page in list(self.pages):
            await page.unload()
        if self.service_worker is not None:
            await self.service_worker.unregister()
        if self._owns_http:
            await self.http.aclose()
