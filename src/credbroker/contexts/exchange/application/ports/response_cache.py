from __future__ import annotations

from typing import Any, Protocol

from credbroker.contexts.exchange.domain.entities import CacheEntry


class ResponseCache(Protocol):
    """
    ResponseCache — injectable store of recent upstream payloads keyed by user identity.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/cache/in_memory_response_cache.py
      - src/credbroker/contexts/exchange/adapters/outbound/cache/redis_response_cache.py
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
    """

    def get(self, *, key: str) -> CacheEntry | None:
        """
        Return stored entry for key regardless of age.

        Args:
            key: Cache key derived from user identity.
        Returns:
            CacheEntry | None: Stored entry or `None`.
        Assumptions:
            Freshness is decided by the caller using `CacheEntry.is_fresh`.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Reads cache storage.
        """
        ...

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        """
        Create or overwrite entry for key.

        Args:
            key: Cache key derived from user identity.
            payload: JSON-serializable payload.
            timestamp: Creation time in epoch seconds.
        Returns:
            None.
        Assumptions:
            Last write wins between concurrent writers.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Mutates cache storage.
        """
        ...

    def delete(self, *, key: str) -> None:
        """
        Remove entry for key if present.

        Args:
            key: Cache key derived from user identity.
        Returns:
            None.
        Assumptions:
            Deleting a missing key is a no-op.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Mutates cache storage.
        """
        ...

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        """
        Remove entries older than TTL.

        Args:
            now: Current epoch seconds.
            ttl_seconds: Time-to-live window in seconds.
        Returns:
            int: Number of removed entries.
        Assumptions:
            Housekeeping only; readers already ignore expired entries.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Mutates cache storage.
        """
        ...
