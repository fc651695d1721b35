from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, TypeVar

from credbroker.contexts.exchange.application.ports.clock import ExchangeClock
from credbroker.contexts.exchange.application.ports.response_cache import ResponseCache
from credbroker.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 8.0

T = TypeVar("T")


class CachedFetcher:
    """
    CachedFetcher — collapses near-simultaneous upstream fetches for the same user.

    Reads hit the injected `ResponseCache` within the TTL window. On a miss exactly one
    producer call per user is in flight: concurrent callers for the same user wait for
    its outcome and receive the same payload or the same exception.

    Related:
      - src/credbroker/contexts/exchange/application/ports/response_cache.py
      - src/credbroker/contexts/exchange/application/use_cases/load_account_snapshot.py
      - src/credbroker/contexts/exchange/application/services/cache_sweeper.py
    """

    def __init__(
        self,
        *,
        cache: ResponseCache,
        clock: ExchangeClock,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
    ) -> None:
        """
        Initialize fetcher dependencies.

        Args:
            cache: Response cache port.
            clock: Time source for entry timestamps.
            ttl_seconds: Read validity window in seconds.
        Returns:
            None.
        Assumptions:
            TTL is short enough that serving a slightly stale payload is acceptable.
        Raises:
            ValueError: If dependencies are missing or TTL is not positive.
        Side Effects:
            None.
        """
        if cache is None:  # type: ignore[truthy-bool]
            raise ValueError("CachedFetcher requires cache")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("CachedFetcher requires clock")
        if ttl_seconds <= 0:
            raise ValueError("CachedFetcher.ttl_seconds must be > 0")
        self._cache = cache
        self._clock = clock
        self._ttl_seconds = float(ttl_seconds)
        self._lock = threading.Lock()
        self._in_flight: dict[str, Future[Any]] = {}
        self._generations: dict[str, int] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def fetch_with_cache(self, *, user_id: UserId | str, producer: Callable[[], T]) -> T:
        """
        Return fresh cached payload for user or produce, store, and return a new one.

        Args:
            user_id: Cache key source.
            producer: Callable performing the actual signed upstream calls.
        Returns:
            T: Cached or freshly produced payload.
        Assumptions:
            Nothing is cached when the producer raises.
        Raises:
            Exception: Whatever the producer raised, re-raised in every waiting caller.
        Side Effects:
            Mutates shared cache state on successful produce.
        """
        key = str(user_id)
        cached = self._read_fresh(key=key)
        if cached is not None:
            return cached[0]

        with self._lock:
            pending = self._in_flight.get(key)
            is_owner = pending is None
            if pending is None:
                pending = Future()
                self._in_flight[key] = pending
            generation = self._generations.get(key, 0)

        if not is_owner:
            log.debug("cache fetch joined in-flight request key=%s", key)
            return pending.result()

        # A previous owner may have written between our first read and taking ownership.
        cached = self._read_fresh(key=key)
        if cached is not None:
            self._release(key=key, pending=pending)
            pending.set_result(cached[0])
            return cached[0]

        try:
            payload = producer()
        except BaseException as error:
            self._release(key=key, pending=pending)
            pending.set_exception(error)
            raise

        with self._lock:
            # Skip the write when credentials were rotated while this fetch ran.
            if self._generations.get(key, 0) == generation:
                self._write(key=key, payload=payload)
        self._release(key=key, pending=pending)
        pending.set_result(payload)
        return payload

    def invalidate(self, *, user_id: UserId | str) -> None:
        """
        Drop cached payload for user so the next fetch goes upstream.

        Args:
            user_id: Cache key source.
        Returns:
            None.
        Assumptions:
            A fetch already in flight for this user still answers its own waiters
            but does not store its payload.
        Raises:
            None.
        Side Effects:
            Deletes one cache entry.
        """
        key = str(user_id)
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            self._in_flight.pop(key, None)
            try:
                self._cache.delete(key=key)
            except Exception:  # noqa: BLE001
                log.exception("response cache delete failed key=%s", key)
                return
        log.debug("response cache invalidated key=%s", key)

    def _release(self, *, key: str, pending: Future[Any]) -> None:
        with self._lock:
            if self._in_flight.get(key) is pending:
                del self._in_flight[key]

    def _read_fresh(self, *, key: str) -> tuple[Any] | None:
        """
        Read entry and return its payload only when within TTL.

        Args:
            key: Cache key.
        Returns:
            tuple[Any] | None: One-element tuple with payload, or `None` on miss.
        Assumptions:
            Cache read failures degrade to a miss.
        Raises:
            None.
        Side Effects:
            Reads cache storage.
        """
        try:
            entry = self._cache.get(key=key)
        except Exception:  # noqa: BLE001
            log.exception("response cache read failed key=%s", key)
            return None
        if entry is None:
            return None
        if not entry.is_fresh(now=self._clock.now(), ttl_seconds=self._ttl_seconds):
            return None
        log.debug("response cache hit key=%s", key)
        return (entry.payload,)

    def _write(self, *, key: str, payload: Any) -> None:
        try:
            self._cache.set(key=key, payload=payload, timestamp=self._clock.now())
        except Exception:  # noqa: BLE001
            log.exception("response cache write failed key=%s", key)
