# models/notification.py
import json
import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from config.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "MateLuxy Notification"
DEFAULT_BODY = "You have a new notification"
FALLBACK_TITLE = "New Property Request"
FALLBACK_BODY = "You have a new property request"
VIBRATE_PATTERN = [100, 50, 100]


class NotificationData(BaseModel):
    url: str = Field(default_factory=lambda: settings.NOTIFICATION_DEFAULT_URL)


class NotificationAction(BaseModel):
    action: str
    title: str


def default_actions() -> List[NotificationAction]:
    return [
        NotificationAction(action="view", title="View Details"),
        NotificationAction(action="close", title="Dismiss"),
    ]


class NotificationPayload(BaseModel):
    """
    Push message body produced by the backend.

    Missing fields take explicit defaults; `from_push_data` never raises.
    """
    title: str = DEFAULT_TITLE
    body: str = DEFAULT_BODY
    icon: str = Field(default_factory=lambda: settings.NOTIFICATION_ICON)
    badge: str = Field(default_factory=lambda: settings.NOTIFICATION_ICON)
    data: NotificationData = Field(default_factory=NotificationData)

    @classmethod
    def fallback(cls) -> "NotificationPayload":
        return cls(title=FALLBACK_TITLE, body=FALLBACK_BODY)

    @classmethod
    def from_push_data(cls, raw: Optional[bytes | str]) -> "NotificationPayload":
        try:
            if raw is None:
                raise ValueError("push event has no data")
            decoded = json.loads(raw)
            if not isinstance(decoded, dict):
                raise ValueError(f"expected a JSON object, got {type(decoded).__name__}")
        except ValueError as e:
            logger.error("Error parsing push notification data: %s", e)
            return cls.fallback()

        # nulls, empty strings and wrong types behave like missing fields
        fields = {name: decoded.get(name) for name in ("title", "body", "icon", "badge")}
        cleaned: Dict[str, Any] = {k: v for k, v in fields.items() if _usable(v)}
        data = decoded.get("data")
        url = data.get("url") if isinstance(data, dict) else None
        cleaned["data"] = NotificationData(url=url) if _usable(url) else NotificationData()
        return cls(**cleaned)


def _usable(value: Any) -> bool:
    return isinstance(value, str) and value != ""


class NotificationOptions(BaseModel):
    body: str
    icon: str
    badge: str
    data: NotificationData = Field(default_factory=NotificationData)
    vibrate: List[int] = Field(default_factory=lambda: list(VIBRATE_PATTERN))
    require_interaction: bool = True
    actions: List[NotificationAction] = Field(default_factory=default_actions)

    @classmethod
    def from_payload(cls, payload: NotificationPayload) -> "NotificationOptions":
        return cls(body=payload.body, icon=payload.icon, badge=payload.badge, data=payload.data)


class PageMessage(BaseModel):
    """Message posted from the worker to open pages."""
    type: Literal["NOTIFICATION"] = "NOTIFICATION"
    title: str
    body: str = ""
    data: NotificationData = Field(default_factory=NotificationData)

    @classmethod
    def parse(cls, raw: Any) -> Optional["PageMessage"]:
        """Return a PageMessage for NOTIFICATION messages, None for anything else."""
        if isinstance(raw, PageMessage):
            return raw
        if not isinstance(raw, dict) or raw.get("type") != "NOTIFICATION":
            return None
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            logger.warning("Ignoring malformed worker message: %s", e)
            return None

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump()
