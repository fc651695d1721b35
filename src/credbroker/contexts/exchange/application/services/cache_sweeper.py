from __future__ import annotations

import logging
import threading

from credbroker.contexts.exchange.application.ports.clock import ExchangeClock
from credbroker.contexts.exchange.application.ports.response_cache import ResponseCache

log = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 30.0


class CacheSweeper:
    """
    CacheSweeper — periodic background eviction of expired response cache entries.

    Related:
      - src/credbroker/contexts/exchange/application/ports/response_cache.py
      - apps/api/main/app.py
    """

    def __init__(
        self,
        *,
        cache: ResponseCache,
        clock: ExchangeClock,
        ttl_seconds: float,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """
        Initialize sweeper dependencies.

        Args:
            cache: Response cache port.
            clock: Time source.
            ttl_seconds: Entry time-to-live window.
            interval_seconds: Delay between sweeps.
        Returns:
            None.
        Assumptions:
            Sweeping bounds memory only; readers already ignore expired entries.
        Raises:
            ValueError: If dependencies are missing or intervals are not positive.
        Side Effects:
            None.
        """
        if cache is None:  # type: ignore[truthy-bool]
            raise ValueError("CacheSweeper requires cache")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("CacheSweeper requires clock")
        if ttl_seconds <= 0:
            raise ValueError("CacheSweeper.ttl_seconds must be > 0")
        if interval_seconds <= 0:
            raise ValueError("CacheSweeper.interval_seconds must be > 0")
        self._cache = cache
        self._clock = clock
        self._ttl_seconds = float(ttl_seconds)
        self._interval_seconds = float(interval_seconds)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def sweep_once(self) -> int:
        removed = self._cache.sweep(now=self._clock.now(), ttl_seconds=self._ttl_seconds)
        if removed:
            log.debug("response cache sweep removed=%s", removed)
        return removed

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="response-cache-sweeper",
            daemon=True,
        )
        self._thread.start()

    def stop(self, *, timeout_s: float = 5.0) -> None:
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=timeout_s)
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            try:
                self.sweep_once()
            except Exception:  # noqa: BLE001
                log.exception("response cache sweep failed")
