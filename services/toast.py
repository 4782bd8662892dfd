# services/toast.py
import logging
from typing import Awaitable, Callable, List, Optional

logger = logging.getLogger(__name__)


class ToastAction:
    def __init__(self, label: str, on_click: Callable[[], Optional[Awaitable[None]]]):
        self.label = label
        self.on_click = on_click


class Toast:
    def __init__(self, title: str, description: str = "", action: Optional[ToastAction] = None):
        self.title = title
        self.description = description
        self.action = action

    async def click_action(self) -> None:
        if self.action is None:
            return
        result = self.action.on_click()
        if result is not None:
            await result

    def __repr__(self) -> str:
        return f"Toast(title={self.title!r}, action={self.action.label if self.action else None!r})"


class Toaster:
    """In-page toast display; keeps the most recent toasts for the page."""

    def __init__(self, limit: int = 20):
        self.limit = limit
        self.toasts: List[Toast] = []

    def show(self, title: str, description: str = "", action: Optional[ToastAction] = None) -> Toast:
        toast = Toast(title, description, action)
        self.toasts.append(toast)
        del self.toasts[:-self.limit]
        logger.info("[toast] %s: %s", title, description)
        return toast
