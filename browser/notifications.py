"""
Notification permission state and displayed system notifications.
"""
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from models.notification import NotificationOptions

logger = logging.getLogger(__name__)

PERMISSION_STATES = ("default", "granted", "denied")

PromptHandler = Callable[[], Union[str, Awaitable[str]]]


class NotificationPermission:
    """
    Notification.permission / Notification.requestPermission().

    `prompt_handler` plays the user answering the consent prompt. Once the user
    has decided (granted/denied) the browser answers without prompting again.
    """

    def __init__(self, state: str = "default", prompt_handler: Optional[PromptHandler] = None):
        if state not in PERMISSION_STATES:
            raise ValueError(f"Unknown permission state: {state}")
        self.state = state
        self.prompt_handler = prompt_handler
        self.prompt_count = 0
        self._revoke_callbacks: List[Callable[[], None]] = []

    async def request_permission(self) -> str:
        if self.state != "default":
            return self.state
        self.prompt_count += 1
        if self.prompt_handler is None:
            # prompt dismissed
            return self.state
        answer = self.prompt_handler()
        if inspect.isawaitable(answer):
            answer = await answer
        if answer not in PERMISSION_STATES:
            raise ValueError(f"Unknown permission answer: {answer}")
        self.set_state(answer)
        return self.state

    def on_revoke(self, callback: Callable[[], None]) -> None:
        self._revoke_callbacks.append(callback)

    def set_state(self, state: str) -> None:
        """Change permission (user edits site settings). Leaving 'granted' invalidates push."""
        if state not in PERMISSION_STATES:
            raise ValueError(f"Unknown permission state: {state}")
        was_granted = self.state == "granted"
        self.state = state
        if was_granted and state != "granted":
            for callback in self._revoke_callbacks:
                callback()


class ShownNotification:
    """A system notification currently displayed by the OS."""

    def __init__(self, title: str, options: NotificationOptions, registration=None):
        self.title = title
        self.options = options
        self.registration = registration
        self.closed = False

    @property
    def data(self):
        return self.options.data

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.registration is not None:
            self.registration.forget_notification(self)

    def __repr__(self) -> str:
        return f"ShownNotification(title={self.title!r}, url={self.options.data.url!r})"
