from __future__ import annotations

import threading
from typing import Any

from credbroker.contexts.exchange.application.ports.response_cache import ResponseCache
from credbroker.contexts.exchange.domain.entities import CacheEntry


class InMemoryResponseCache(ResponseCache):
    """
    InMemoryResponseCache — process-local response cache for single-instance deployments.

    Entries live only while the hosting process stays warm.

    Related:
      - src/credbroker/contexts/exchange/application/ports/response_cache.py
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

    def get(self, *, key: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        entry = CacheEntry(key=key, payload=payload, timestamp=timestamp)
        with self._lock:
            self._entries[key] = entry

    def delete(self, *, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        with self._lock:
            expired = [
                key
                for key, entry in self._entries.items()
                if not entry.is_fresh(now=now, ttl_seconds=ttl_seconds)
            ]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
