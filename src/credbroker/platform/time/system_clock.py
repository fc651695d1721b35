from __future__ import annotations

import time


class SystemClock:
    """
    SystemClock — platform clock backed by system wall time.

    Provides epoch seconds for cache bookkeeping and epoch milliseconds for
    request `timestamp` parameters.
    """

    def now(self) -> float:
        return time.time()

    def now_ms(self) -> int:
        return int(time.time() * 1000)
