from __future__ import annotations

import threading
import time
from typing import Any
from uuid import UUID

import pytest

from credbroker.contexts.exchange.adapters.outbound.cache import InMemoryResponseCache
from credbroker.contexts.exchange.application.services import CachedFetcher
from credbroker.contexts.exchange.domain.entities import CacheEntry
from credbroker.shared_kernel.primitives import UserId

_USER_A = UserId(UUID("00000000-0000-0000-0000-00000000000a"))
_USER_B = UserId(UUID("00000000-0000-0000-0000-00000000000b"))


class _ManualClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.current = now

    def now(self) -> float:
        return self.current

    def now_ms(self) -> int:
        return int(self.current * 1000)


class _CountingProducer:
    def __init__(self, payloads: list[Any]) -> None:
        self._payloads = list(payloads)
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        return self._payloads.pop(0)


class _BrokenCache:
    def get(self, *, key: str) -> CacheEntry | None:
        raise ConnectionError("cache down")

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        raise ConnectionError("cache down")

    def delete(self, *, key: str) -> None:
        raise ConnectionError("cache down")

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        return 0


def test_fetch_with_cache_serves_cached_payload_within_ttl_boundary() -> None:
    """
    Verify hit at 7.9 s and miss at 8.1 s after the first fetch with default 8 s TTL.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Entry is fresh while `now - timestamp < ttl`.
    Raises:
        AssertionError: If producer call count differs at TTL boundary.
    Side Effects:
        None.
    """
    clock = _ManualClock()
    fetcher = CachedFetcher(cache=InMemoryResponseCache(), clock=clock)
    producer = _CountingProducer(payloads=[{"v": 1}, {"v": 2}])

    first = fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)
    clock.current += 7.9
    second = fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)
    clock.current += 0.2
    third = fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)

    assert first == {"v": 1}
    assert second == {"v": 1}
    assert third == {"v": 2}
    assert producer.calls == 2


def test_fetch_with_cache_expires_exactly_at_ttl() -> None:
    clock = _ManualClock()
    fetcher = CachedFetcher(cache=InMemoryResponseCache(), clock=clock, ttl_seconds=8.0)
    producer = _CountingProducer(payloads=["a", "b"])

    fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)
    clock.current += 8.0

    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=producer) == "b"


def test_fetch_with_cache_keys_entries_per_user() -> None:
    fetcher = CachedFetcher(cache=InMemoryResponseCache(), clock=_ManualClock())
    producer = _CountingProducer(payloads=["for-a", "for-b"])

    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=producer) == "for-a"
    assert fetcher.fetch_with_cache(user_id=_USER_B, producer=producer) == "for-b"
    assert fetcher.fetch_with_cache(user_id=str(_USER_A), producer=producer) == "for-a"


def test_fetch_with_cache_does_not_cache_producer_failure() -> None:
    """
    Verify producer exception propagates and the next call retries the producer.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        No partial state is committed when the producer raises.
    Raises:
        AssertionError: If failure was cached or swallowed.
    Side Effects:
        None.
    """
    cache = InMemoryResponseCache()
    fetcher = CachedFetcher(cache=cache, clock=_ManualClock())
    calls = {"count": 0}

    def failing_then_ok() -> str:
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("upstream exploded")
        return "ok"

    with pytest.raises(RuntimeError, match="upstream exploded"):
        fetcher.fetch_with_cache(user_id=_USER_A, producer=failing_then_ok)
    assert len(cache) == 0
    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=failing_then_ok) == "ok"
    assert calls["count"] == 2


def test_fetch_with_cache_collapses_concurrent_misses_into_one_producer_call() -> None:
    """
    Verify concurrent callers for the same user share one in-flight producer call.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Waiters join the owner's future instead of calling the producer themselves.
    Raises:
        AssertionError: If producer ran more than once or results differ.
    Side Effects:
        Starts worker threads.
    """
    fetcher = CachedFetcher(cache=InMemoryResponseCache(), clock=_ManualClock())
    release = threading.Event()
    entered = threading.Event()
    calls = {"count": 0}
    calls_lock = threading.Lock()

    def slow_producer() -> dict[str, int]:
        with calls_lock:
            calls["count"] += 1
        entered.set()
        release.wait(timeout=5.0)
        return {"balance": 100}

    results: list[Any] = []
    results_lock = threading.Lock()

    def worker() -> None:
        value = fetcher.fetch_with_cache(user_id=_USER_A, producer=slow_producer)
        with results_lock:
            results.append(value)

    owner = threading.Thread(target=worker)
    owner.start()
    assert entered.wait(timeout=5.0)
    waiters = [threading.Thread(target=worker) for _ in range(4)]
    for thread in waiters:
        thread.start()
    time.sleep(0.2)
    release.set()
    for thread in [owner, *waiters]:
        thread.join(timeout=5.0)

    assert calls["count"] == 1
    assert results == [{"balance": 100}] * 5


class _StallingCache:
    """
    In-memory cache whose next gated read captures a miss, then stalls until released.
    """

    def __init__(self) -> None:
        self._inner = InMemoryResponseCache()
        self.gate_next_get = False
        self.miss_captured = threading.Event()
        self.resume = threading.Event()

    def get(self, *, key: str) -> CacheEntry | None:
        entry = self._inner.get(key=key)
        if self.gate_next_get:
            self.gate_next_get = False
            self.miss_captured.set()
            self.resume.wait(timeout=5.0)
        return entry

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        self._inner.set(key=key, payload=payload, timestamp=timestamp)

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        return self._inner.sweep(now=now, ttl_seconds=ttl_seconds)


def test_fetch_with_cache_late_miss_after_owner_release_reuses_written_payload() -> None:
    """
    Verify a caller that read a miss before the owner wrote does not call the producer again.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        The late caller takes the in-flight lock only after the owner released it.
    Raises:
        AssertionError: If the producer ran twice inside one TTL window.
    Side Effects:
        Starts worker threads.
    """
    cache = _StallingCache()
    fetcher = CachedFetcher(cache=cache, clock=_ManualClock())
    entered = threading.Event()
    calls = {"count": 0}
    calls_lock = threading.Lock()

    def producer() -> dict[str, int]:
        with calls_lock:
            calls["count"] += 1
            number = calls["count"]
        entered.set()
        cache.miss_captured.wait(timeout=5.0)
        return {"n": number}

    results: list[Any] = []
    results_lock = threading.Lock()

    def worker() -> None:
        value = fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)
        with results_lock:
            results.append(value)

    owner = threading.Thread(target=worker)
    owner.start()
    assert entered.wait(timeout=5.0)
    cache.gate_next_get = True
    late = threading.Thread(target=worker)
    late.start()
    owner.join(timeout=5.0)
    cache.resume.set()
    late.join(timeout=5.0)

    assert calls["count"] == 1
    assert results == [{"n": 1}, {"n": 1}]



def test_fetch_with_cache_shares_producer_exception_with_waiters() -> None:
    fetcher = CachedFetcher(cache=InMemoryResponseCache(), clock=_ManualClock())
    release = threading.Event()
    entered = threading.Event()

    def failing_producer() -> None:
        entered.set()
        release.wait(timeout=5.0)
        raise ValueError("shared failure")

    errors: list[BaseException] = []

    def worker() -> None:
        try:
            fetcher.fetch_with_cache(user_id=_USER_A, producer=failing_producer)
        except ValueError as error:
            errors.append(error)

    owner = threading.Thread(target=worker)
    owner.start()
    assert entered.wait(timeout=5.0)
    waiter = threading.Thread(target=worker)
    waiter.start()
    time.sleep(0.2)
    release.set()
    owner.join(timeout=5.0)
    waiter.join(timeout=5.0)

    assert len(errors) == 2
    assert all(str(error) == "shared failure" for error in errors)


def test_fetch_with_cache_degrades_to_producer_when_cache_backend_fails() -> None:
    fetcher = CachedFetcher(cache=_BrokenCache(), clock=_ManualClock())
    producer = _CountingProducer(payloads=["a", "b"])

    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=producer) == "a"
    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=producer) == "b"


def test_cached_fetcher_rejects_non_positive_ttl() -> None:
    with pytest.raises(ValueError, match="ttl_seconds must be > 0"):
        CachedFetcher(cache=InMemoryResponseCache(), clock=_ManualClock(), ttl_seconds=0)


def test_invalidate_drops_entry_and_next_fetch_calls_producer() -> None:
    cache = InMemoryResponseCache()
    fetcher = CachedFetcher(cache=cache, clock=_ManualClock())
    producer = _CountingProducer(payloads=["old", "new"])

    fetcher.fetch_with_cache(user_id=_USER_A, producer=producer)
    fetcher.invalidate(user_id=_USER_A)

    assert len(cache) == 0
    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=producer) == "new"


def test_invalidate_during_in_flight_fetch_keeps_its_payload_out_of_cache() -> None:
    """
    Verify a fetch started before invalidation answers its caller but stores nothing.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Invalidation bumps a per-key generation checked before the write.
    Raises:
        AssertionError: If the superseded payload was cached.
    Side Effects:
        Starts a worker thread.
    """
    cache = InMemoryResponseCache()
    fetcher = CachedFetcher(cache=cache, clock=_ManualClock())
    entered = threading.Event()
    release = threading.Event()
    results: list[Any] = []

    def slow_producer() -> str:
        entered.set()
        release.wait(timeout=5.0)
        return "fetched-with-old-pair"

    def worker() -> None:
        results.append(fetcher.fetch_with_cache(user_id=_USER_A, producer=slow_producer))

    thread = threading.Thread(target=worker)
    thread.start()
    assert entered.wait(timeout=5.0)
    fetcher.invalidate(user_id=_USER_A)
    release.set()
    thread.join(timeout=5.0)

    assert results == ["fetched-with-old-pair"]
    assert len(cache) == 0
    assert fetcher.fetch_with_cache(user_id=_USER_A, producer=lambda: "fresh") == "fresh"


def test_invalidate_logs_and_survives_cache_backend_failure() -> None:
    fetcher = CachedFetcher(cache=_BrokenCache(), clock=_ManualClock())

    fetcher.invalidate(user_id=_USER_A)
