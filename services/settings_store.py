"""
Persisted agent preferences.

LocalSettingsStore is a string-keyed JSON blob on disk (the web app's
localStorage). Agent preferences live under settings.SETTINGS_KEY as a JSON
string; a corrupt value is logged and treated as defaults (push disabled).
"""
import json
import logging
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from browser.profile import BrowserProfile
from config.settings import settings
from models.preferences import AgentSettings, SettingsSaveResult
from services.push_notifications import (
    PushSubscriptionManager,
    get_notification_permission_status,
    is_push_notification_supported,
)

logger = logging.getLogger(__name__)


class LocalSettingsStore:
    def __init__(self, path: Optional[str | Path] = None):
        self.path = Path(path or settings.SETTINGS_STORE_PATH)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Local settings store %s is unreadable: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Local settings store %s is not a JSON object", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)


def load_agent_settings(store: LocalSettingsStore, key: Optional[str] = None) -> AgentSettings:
    saved = store.get_item(key or settings.SETTINGS_KEY)
    if not saved:
        return AgentSettings()
    try:
        return AgentSettings.model_validate_json(saved)
    except ValidationError as e:
        logger.error("Error parsing saved settings: %s", e)
        return AgentSettings()


def is_push_enabled(store: LocalSettingsStore) -> bool:
    return load_agent_settings(store).push_notifications_enabled


async def save_agent_settings(
    store: LocalSettingsStore,
    desired: AgentSettings,
    manager: PushSubscriptionManager,
    browser: BrowserProfile,
) -> SettingsSaveResult:
    """
    Apply the push toggle, then persist the preferences.

    Turning push on without a granted permission subscribes first; if that fails
    the preference is switched off and nothing is saved.
    """
    desired = desired.model_copy()
    supported = is_push_notification_supported(browser)
    permission = get_notification_permission_status(browser)

    if desired.push_notifications_enabled and permission != "granted":
        if not supported:
            desired.push_notifications_enabled = False
            return SettingsSaveResult(
                saved=False, message="Push notifications are not supported in your browser", settings=desired
            )
        result = await manager.ensure_subscribed()
        if not result.success:
            desired.push_notifications_enabled = False
            return SettingsSaveResult(
                saved=False, message=f"Failed to enable push notifications: {result.message}", settings=desired
            )
        message = "Push notifications enabled"
    elif not desired.push_notifications_enabled and permission == "granted":
        result = await manager.revoke_subscription()
        message = (
            "Settings saved successfully"
            if result.success
            else f"Failed to disable push notifications: {result.message}"
        )
    else:
        message = "Settings saved successfully"

    store.set_item(settings.SETTINGS_KEY, desired.model_dump_json(by_alias=True))
    return SettingsSaveResult(saved=True, message=message, settings=desired)
