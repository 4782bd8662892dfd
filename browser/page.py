"""
An open page (window client) of the web app.

The page is an EventTarget for window events (mousedown, keydown, touchstart,
scroll, beforeunload) and owns a separate `messages` target standing in for
navigator.serviceWorker's 'message' events.
"""
import logging
from typing import Any, List, Optional
from urllib.parse import urljoin

from browser.events import Event, EventTarget, MessageEvent

logger = logging.getLogger(__name__)


class Page(EventTarget):
    def __init__(self, url: str, profile=None):
        super().__init__()
        self.profile = profile
        origin = profile.origin if profile is not None else ""
        self.url = urljoin(origin + "/", url) if origin else url
        self.focused = False
        self.closed = False
        self.controller = None  # active ServiceWorker controlling this page
        self.messages = EventTarget()
        self.history: List[str] = [self.url]

    def __repr__(self) -> str:
        return f"Page(url={self.url!r}, controlled={self.controller is not None})"

    async def focus(self) -> "Page":
        if self.profile is not None:
            for other in self.profile.pages:
                other.focused = False
        self.focused = True
        return self

    async def navigate(self, url: str) -> "Page":
        origin = self.profile.origin if self.profile is not None else ""
        self.url = urljoin(origin + "/", url) if origin else url
        self.history.append(self.url)
        logger.debug("Page navigated to %s", self.url)
        return self

    async def post_message(self, data: Any, source: Optional[Any] = None) -> None:
        """Deliver a message from the worker to this page's service-worker listeners."""
        if self.closed:
            return
        await self.messages.dispatch_event(MessageEvent(data=data, source=source))

    async def fire(self, event_type: str, data: Any = None) -> None:
        """Dispatch a window event (user interaction, scroll, ...)."""
        await self.dispatch_event(Event(type=event_type, data=data))

    async def unload(self) -> None:
        if self.closed:
            return
        await self.dispatch_event(Event(type="beforeunload"))
        self.closed = True
        self.controller = None
        if self.profile is not None and self in self.profile.pages:
            self.profile.pages.remove(self)
