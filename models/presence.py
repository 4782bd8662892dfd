# models/presence.py
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class PresenceRecord(BaseModel):
    """Server-side admin presence; only mutated by the heartbeat and offline signal."""
    admin_id: str
    last_active_at: Optional[datetime] = None
    online: bool = False


class PropertyRequestsSync(BaseModel):
    new_requests: list = Field(default_factory=list, alias="newRequests")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
