"""
Service worker container, registration, clients and the worker's global scope.

Purpose:
- ServiceWorkerContainer (navigator.serviceWorker): register a script for the origin,
  expose `ready` once a worker is active
- ServiceWorkerRegistration: push manager + displayed notifications
- Clients (self.clients): window clients seen from the worker, claim/openWindow
- WorkerScope: everything a worker can reach (registration, caches, clients, fetch)

The worker itself runs as its own asyncio task (workers/service_worker.py); the
container only talks to it through `worker.dispatch(event)`.
"""
import asyncio
import logging
from typing import Callable, Dict, List, Optional

import httpx

from browser.events import ActivateEvent, InstallEvent
from browser.notifications import ShownNotification
from core.exceptions import InvalidStateError, NotAllowedError
from models.notification import NotificationOptions

logger = logging.getLogger(__name__)


class ServiceWorkerRegistration:
    def __init__(self, scope: str, script_url: str, profile):
        self.scope = scope
        self.script_url = script_url
        self.profile = profile
        self.push_manager = profile.push_manager
        self.installing = None
        self.waiting = None
        self.active = None
        self._notifications: List[ShownNotification] = []

    def __repr__(self) -> str:
        return f"ServiceWorkerRegistration(scope={self.scope!r}, script={self.script_url!r})"

    async def show_notification(self, title: str, options: NotificationOptions) -> ShownNotification:
        if self.profile.permission.state != "granted":
            raise NotAllowedError("No notification permission has been granted for this origin")
        shown = ShownNotification(title, options, registration=self)
        self._notifications.append(shown)
        logger.info("Notification shown: %s", title)
        return shown

    async def get_notifications(self) -> List[ShownNotification]:
        return list(self._notifications)

    def forget_notification(self, notification: ShownNotification) -> None:
        if notification in self._notifications:
            self._notifications.remove(notification)


class Clients:
    """self.clients inside the worker."""

    def __init__(self, profile, worker=None):
        self.profile = profile
        self.worker = worker

    async def match_all(self, type: str = "window", include_uncontrolled: bool = False):
        if type not in ("window", "all"):
            return []
        pages = [p for p in self.profile.pages if not p.closed]
        if include_uncontrolled:
            return pages
        return [p for p in pages if p.controller is not None and p.controller is self.worker]

    async def open_window(self, url: str):
        page = self.profile.open_page(url)
        await page.focus()
        return page

    async def claim(self) -> None:
        for page in self.profile.pages:
            if not page.closed:
                page.controller = self.worker


class WorkerScope:
    """The worker's global scope (`self` inside service-worker.js)."""

    def __init__(self, registration: ServiceWorkerRegistration, profile):
        self.registration = registration
        self.caches = profile.caches
        self.clients = Clients(profile)
        self.http: httpx.AsyncClient = profile.http
        self.skip_waiting_requested = False

    def bind(self, worker) -> None:
        self.clients.worker = worker

    async def skip_waiting(self) -> None:
        self.skip_waiting_requested = True


WorkerFactory = Callable[[WorkerScope], object]


class ServiceWorkerContainer:
    def __init__(self, profile, worker_factories: Optional[Dict[str, WorkerFactory]] = None):
        self.profile = profile
        self.worker_factories = dict(worker_factories or {})
        self._registration: Optional[ServiceWorkerRegistration] = None
        self._ready = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def registration(self) -> Optional[ServiceWorkerRegistration]:
        return self._registration

    async def get_registration(self) -> Optional[ServiceWorkerRegistration]:
        return self._registration

    async def register(self, script_url: str, scope: str = "/") -> ServiceWorkerRegistration:
        """
        Register `script_url` for `scope`: install then activate its worker.

        Registering the script that is already active returns the existing registration.
        """
        async with self._lock:
            current = self._registration
            if current is not None and current.script_url == script_url and current.active is not None:
                return current

            factory = self.worker_factories.get(script_url)
            if factory is None:
                raise InvalidStateError(f"Failed to register a ServiceWorker: script {script_url} not found")

            registration = current or ServiceWorkerRegistration(scope, script_url, self.profile)
            registration.script_url = script_url
            worker_scope = WorkerScope(registration, self.profile)
            worker = factory(worker_scope)
            worker_scope.bind(worker)
            worker.start()

            registration.installing = worker
            try:
                await worker.dispatch(InstallEvent())
            except Exception:
                registration.installing = None
                await worker.stop()
                raise
            registration.installing = None

            previous = registration.active
            if previous is not None and not worker_scope.skip_waiting_requested:
                registration.waiting = worker
                logger.info("Service worker %s installed and waiting", script_url)
                self._registration = registration
                return registration

            registration.waiting = None
            registration.active = worker
            self._registration = registration
            if previous is not None:
                await previous.stop()
            await worker.dispatch(ActivateEvent())
            self._ready.set()
            logger.info("Service worker %s activated for scope %s", script_url, scope)
            return registration

    async def ready(self) -> ServiceWorkerRegistration:
        """Resolve once a worker is active (waits forever if nothing registers one)."""
        await self._ready.wait()
        if self._registration is None:
            raise InvalidStateError("The service worker registration was removed while waiting for it")
        return self._registration

    async def unregister(self) -> bool:
        registration = self._registration
        if registration is None:
            return False
        for page in self.profile.pages:
            if page.controller is registration.active:
                page.controller = None
        for worker in (registration.active, registration.waiting):
            if worker is not None:
                await worker.stop()
        self._registration = None
        self._ready = asyncio.Event()
        return True
