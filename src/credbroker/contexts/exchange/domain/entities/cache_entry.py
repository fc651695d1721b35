from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    CacheEntry — most recent successful upstream payload for one cache key.

    Related:
      - src/credbroker/contexts/exchange/application/ports/response_cache.py
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
    """

    key: str
    payload: Any
    timestamp: float

    def is_fresh(self, *, now: float, ttl_seconds: float) -> bool:
        """
        Check whether entry is still within its read window.

        Args:
            now: Current epoch seconds.
            ttl_seconds: Time-to-live window in seconds.
        Returns:
            bool: `True` when `now - timestamp < ttl_seconds`.
        Assumptions:
            Expired entries are treated as absent by readers.
        Raises:
            None.
        Side Effects:
            None.
        """
        return now - self.timestamp < ttl_seconds
