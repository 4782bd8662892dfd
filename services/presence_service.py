import logging
from typing import Dict, Optional

from models.presence import PresenceRecord, utcnow

logger = logging.getLogger(__name__)


class PresenceService:
    """Admin presence records (in-memory store for dev)."""

    def __init__(self):
        self.records: Dict[str, PresenceRecord] = {}

    def mark_active(self, admin_id: str) -> PresenceRecord:
        record = self.records.get(admin_id) or PresenceRecord(admin_id=admin_id)
        record.last_active_at = utcnow()
        record.online = True
        self.records[admin_id] = record
        return record

    def mark_offline(self, admin_id: str) -> PresenceRecord:
        record = self.records.get(admin_id) or PresenceRecord(admin_id=admin_id)
        record.online = False
        self.records[admin_id] = record
        logger.info("Admin %s went offline", admin_id)
        return record

    def get(self, admin_id: str) -> Optional[PresenceRecord]:
        return self.records.get(admin_id)

    def clear(self) -> None:
        self.records.clear()


presence_service = PresenceService()
