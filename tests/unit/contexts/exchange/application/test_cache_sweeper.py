from __future__ import annotations

import threading
from typing import Any

import pytest

from credbroker.contexts.exchange.adapters.outbound.cache import InMemoryResponseCache
from credbroker.contexts.exchange.application.services import CacheSweeper
from credbroker.contexts.exchange.domain.entities import CacheEntry


class _ManualClock:
    def __init__(self, now: float) -> None:
        self.current = now

    def now(self) -> float:
        return self.current

    def now_ms(self) -> int:
        return int(self.current * 1000)


class _FlakyCache:
    """
    Cache fake that fails first sweep and signals every later sweep.
    """

    def __init__(self) -> None:
        self.sweeps = 0
        self.recovered = threading.Event()

    def get(self, *, key: str) -> CacheEntry | None:
        return None

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        return None

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        self.sweeps += 1
        if self.sweeps == 1:
            raise ConnectionError("sweep backend down")
        self.recovered.set()
        return 0


def test_sweep_once_removes_only_expired_entries() -> None:
    """
    Verify sweeper evicts entries older than TTL and keeps fresh ones.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Sweep uses the same freshness rule as cache reads.
    Raises:
        AssertionError: If wrong entries were evicted.
    Side Effects:
        None.
    """
    cache = InMemoryResponseCache()
    cache.set(key="stale", payload=1, timestamp=100.0)
    cache.set(key="fresh", payload=2, timestamp=195.0)
    sweeper = CacheSweeper(cache=cache, clock=_ManualClock(now=200.0), ttl_seconds=8.0)

    removed = sweeper.sweep_once()

    assert removed == 1
    assert cache.get(key="stale") is None
    assert cache.get(key="fresh") is not None


def test_sweeper_thread_survives_sweep_failure_and_stops_cleanly() -> None:
    """
    Verify background loop logs sweep failures, keeps running, and stops on request.
    """
    cache = _FlakyCache()
    sweeper = CacheSweeper(
        cache=cache,
        clock=_ManualClock(now=0.0),
        ttl_seconds=8.0,
        interval_seconds=0.01,
    )

    sweeper.start()
    sweeper.start()
    assert cache.recovered.wait(timeout=5.0)
    assert sweeper.is_running
    sweeper.stop()

    assert not sweeper.is_running
    assert cache.sweeps >= 2


def test_cache_sweeper_validates_intervals() -> None:
    with pytest.raises(ValueError, match="interval_seconds must be > 0"):
        CacheSweeper(
            cache=InMemoryResponseCache(),
            clock=_ManualClock(now=0.0),
            ttl_seconds=8.0,
            interval_seconds=0,
        )
