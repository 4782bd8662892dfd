"""
Event primitives shared by pages and the service worker.

Purpose:
- EventTarget: add/remove/dispatch listeners by event type (window, navigator.serviceWorker)
- Event models for worker lifecycle and push delivery

Listener failures are reported to the log and never break dispatch to the
remaining listeners, the same way a browser reports an uncaught listener error.
"""
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Event(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    type: str
    data: Any = None


class InstallEvent(Event):
    type: str = "install"


class ActivateEvent(Event):
    type: str = "activate"


class PushEvent(Event):
    """`data` is the raw push message body (bytes) or None for an empty push."""
    type: str = "push"
    data: Optional[bytes] = None


class NotificationClickEvent(Event):
    type: str = "notificationclick"
    notification: Any  # browser.notifications.ShownNotification
    action: str = ""


class SyncEvent(Event):
    type: str = "sync"
    tag: str


class MessageEvent(Event):
    type: str = "message"
    source: Any = None


Listener = Callable[[Event], Union[None, Awaitable[None]]]


class EventTarget:
    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        # same listener object is only registered once per type
        if listener not in self._listeners[event_type]:
            self._listeners[event_type].append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        try:
            self._listeners[event_type].remove(listener)
        except ValueError:
            pass

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, []))

    async def dispatch_event(self, event: Event) -> None:
        for listener in list(self._listeners.get(event.type, [])):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Uncaught error in '%s' listener %r", event.type, listener)
