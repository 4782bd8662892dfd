"""
CacheStorage (window.caches / self.caches) backed by an httpx client for fetches.
"""
import logging
from typing import Dict, Iterable, List

import httpx

from core.exceptions import BackendError

logger = logging.getLogger(__name__)


class Cache:
    def __init__(self, name: str, http: httpx.AsyncClient):
        self.name = name
        self._http = http
        self.entries: Dict[str, bytes] = {}

    async def add_all(self, urls: Iterable[str]) -> None:
        """Fetch every URL and store all responses, or store nothing if any fetch fails."""
        fetched: Dict[str, bytes] = {}
        for url in urls:
            resp = await self._http.get(url)
            if not resp.is_success:
                raise BackendError(f"Request for {url} failed: {resp.status_code}", resp.status_code)
            fetched[url] = resp.content
        self.entries.update(fetched)

    def match(self, url: str) -> bytes | None:
        return self.entries.get(url)


class CacheStorage:
    def __init__(self, http: httpx.AsyncClient):
        self._http = http
        self._caches: Dict[str, Cache] = {}

    async def open(self, name: str) -> Cache:
        if name not in self._caches:
            self._caches[name] = Cache(name, self._http)
        return self._caches[name]

    async def keys(self) -> List[str]:
        return list(self._caches.keys())

    async def delete(self, name: str) -> bool:
        return self._caches.pop(name, None) is not None
