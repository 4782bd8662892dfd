from typing import List


class PropertyRequestService:
    """Property requests not yet handed to the agents' background sync (in-memory store for dev)."""

    def __init__(self):
        self.pending: List[dict] = []

    def add(self, request: dict) -> None:
        self.pending.append(request)

    def take_new(self) -> List[dict]:
        taken, self.pending = self.pending, []
        return taken

    def clear(self) -> None:
        self.pending.clear()


property_request_service = PropertyRequestService()
