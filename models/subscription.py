# models/subscription.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class PushSubscription(BaseModel):
    """Delivery channel for one browser profile, as serialised by PushSubscription.toJSON()."""
    model_config = ConfigDict(populate_by_name=True)

    endpoint: str = Field(..., min_length=1)
    expiration_time: Optional[int] = Field(None, alias="expirationTime")
    keys: SubscriptionKeys

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PermissionResult(BaseModel):
    supported: bool
    granted: bool
    error: Optional[str] = None


class SubscribeResult(BaseModel):
    success: bool
    message: str
    subscription: Optional[PushSubscription] = None
    warning: Optional[str] = None  # subscribed locally but the backend did not store it
    error: Optional[str] = None


class RevokeResult(BaseModel):
    success: bool
    message: str
    error: Optional[str] = None
