from __future__ import annotations

from typing import Protocol


class ExchangeClock(Protocol):
    """
    ExchangeClock — time source for request timestamps and cache bookkeeping.

    Related:
      - src/credbroker/platform/time/system_clock.py
      - src/credbroker/contexts/exchange/application/services/request_signing.py
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
    """

    def now(self) -> float:
        """
        Return current epoch time in seconds.
        """
        ...

    def now_ms(self) -> int:
        """
        Return current epoch time in milliseconds, used as signed `timestamp`.
        """
        ...
