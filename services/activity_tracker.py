"""
Admin presence heartbeat.

Tells the backend a signed-in admin is active, and offline when the page goes
away. Interaction events only emit a new "active" signal once
`update_interval` has elapsed since the previous one; an idle-check timer
applies the same test every `check_interval` so an open but untouched tab is
still reported.

All network calls are fire-and-forget: failures are logged, never raised or
retried.
"""
import asyncio
import logging
import time
from typing import Callable, Optional, Set

from browser.events import Event
from browser.page import Page
from config.settings import settings
from services.api_client import BackendClient

logger = logging.getLogger(__name__)

ACTIVITY_EVENTS = ("mousedown", "keydown", "touchstart", "scroll")


class ActivityTracker:
    def __init__(
        self,
        admin_id: Optional[str],
        page: Page,
        api: BackendClient,
        update_interval: Optional[float] = None,
        check_interval: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.admin_id = admin_id
        self.page = page
        self.api = api
        self.update_interval = settings.ACTIVITY_UPDATE_INTERVAL if update_interval is None else update_interval
        self.check_interval = settings.ACTIVITY_CHECK_INTERVAL if check_interval is None else check_interval
        self.clock = clock
        self.last_activity_update: Optional[float] = None
        self._timer: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self._started = False
        self._active = False  # between start() and stop()/unload
        self._offline_sent = False

    # ---------------------- lifecycle ---------------------- #

    def start(self) -> None:
        if not self.admin_id or self._started:
            return
        self._started = True
        self._active = True
        self._offline_sent = False

        self._update_activity()

        for event_type in ACTIVITY_EVENTS:
            self.page.add_event_listener(event_type, self.handle_user_activity)
        self.page.add_event_listener("beforeunload", self.handle_unload)

        self._timer = asyncio.create_task(self._idle_check_loop(), name=f"activity-timer:{self.admin_id}")

    def stop(self) -> None:
        """Remove listeners, stop the timer and report the admin offline."""
        for event_type in ACTIVITY_EVENTS:
            self.page.remove_event_listener(event_type, self.handle_user_activity)
        self.page.remove_event_listener("beforeunload", self.handle_unload)
        self._cancel_timer()
        self._started = False
        self._active = False
        if self.admin_id and not self._offline_sent:
            self._set_offline()

    async def drain(self) -> None:
        """Wait for outstanding fire-and-forget calls."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def timer_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ---------------------- event handlers ---------------------- #

    def handle_user_activity(self, event: Optional[Event] = None) -> None:
        if self._active and self._due():
            self._update_activity()

    def handle_unload(self, event: Optional[Event] = None) -> None:
        self._active = False
        if not self._offline_sent:
            self._set_offline()
        self._cancel_timer()

    def check_idle(self) -> bool:
        """One idle-check tick: emit 'active' if the update interval has passed."""
        if self._active and self._due():
            self._update_activity()
            return True
        return False

    async def _idle_check_loop(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval)
            self.check_idle()

    # ---------------------- signals ---------------------- #

    def _due(self) -> bool:
        if self.last_activity_update is None:
            return True
        return self.clock() - self.last_activity_update >= self.update_interval

    def _update_activity(self) -> None:
        # stamped before the request so bursts of events cannot slip in while it is in flight
        self.last_activity_update = self.clock()
        self._spawn(self._send_activity(self.admin_id))

    def _set_offline(self) -> None:
        self._offline_sent = True
        self._spawn(self._send_offline(self.admin_id))

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_activity(self, admin_id: str) -> None:
        try:
            ok = await self.api.update_admin_activity(admin_id)
            if not ok:
                logger.warning("Activity update for %s was rejected by the server", admin_id)
        except Exception as e:
            logger.error("Failed to update activity status: %s", e)

    async def _send_offline(self, admin_id: str) -> None:
        try:
            ok = await self.api.set_admin_offline(admin_id)
            if not ok:
                logger.warning("Offline update for %s was rejected by the server", admin_id)
        except Exception as e:
            logger.error("Failed to set offline status: %s", e)


def init_activity_tracking(admin_id: Optional[str], page: Page, api: BackendClient, **kwargs) -> ActivityTracker:
    """Create and start a tracker for the signed-in admin."""
    tracker = ActivityTracker(admin_id, page, api, **kwargs)
    tracker.start()
    return tracker


def cleanup_activity_tracking(tracker: ActivityTracker) -> None:
    tracker.stop()
