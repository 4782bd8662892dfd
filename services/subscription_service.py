from typing import Dict, List, Optional
import logging

from models.subscription import PushSubscription

logger = logging.getLogger(__name__)


class SubscriptionService:
    """
    Backend mirror of browser push subscriptions (in-memory store for dev).

    Keyed by endpoint: the same browser saving again only refreshes keys/owner.
    Results are dicts carrying a 'status_code' for the HTTP layer.
    """

    def __init__(self):
        self.subscriptions: Dict[str, dict] = {}

    def save_subscription(self, owner: str, sub: PushSubscription):
        existing = self.subscriptions.get(sub.endpoint)
        self.subscriptions[sub.endpoint] = {"owner": owner, "subscription": sub}
        if existing:
            logger.info("Refreshed push subscription for %s: %s", owner, sub.endpoint)
            return {"message": "Subscription updated", "status_code": 200}
        logger.info("Stored push subscription for %s: %s", owner, sub.endpoint)
        return {"message": "Subscription saved", "status_code": 201}

    def delete_subscription(self, endpoint: str):
        if endpoint in self.subscriptions:
            del self.subscriptions[endpoint]
            return {"message": "Subscription deleted", "status_code": 200}
        return {"error": "Subscription not found", "status_code": 404}

    def list_subscriptions(self, owner: Optional[str] = None) -> List[PushSubscription]:
        return [
            entry["subscription"]
            for entry in self.subscriptions.values()
            if owner is None or entry["owner"] == owner
        ]

    def clear(self) -> None:
        self.subscriptions.clear()


subscription_service = SubscriptionService()
