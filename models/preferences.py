# models/preferences.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AgentSettings(BaseModel):
    """Agent panel preferences persisted under the `agent_settings` key."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    theme: Literal["light", "dark", "system"] = "light"
    sidebar_collapsed: bool = Field(False, alias="sidebarCollapsed")
    notifications_enabled: bool = Field(True, alias="notificationsEnabled")
    push_notifications_enabled: bool = Field(False, alias="pushNotificationsEnabled")
    font_preference: str = Field("default", alias="fontPreference")
    accent_color: str = Field("red", alias="accentColor")


class SettingsSaveResult(BaseModel):
    saved: bool
    message: str
    settings: AgentSettings
