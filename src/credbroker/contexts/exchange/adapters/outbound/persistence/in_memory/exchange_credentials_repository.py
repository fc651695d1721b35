from __future__ import annotations

import threading

from credbroker.contexts.exchange.application.ports.exchange_credentials_repository import (
    ExchangeCredentialsRepository,
)
from credbroker.contexts.exchange.domain.entities import ExchangeCredentials
from credbroker.shared_kernel.primitives import UserId


class InMemoryExchangeCredentialsRepository(ExchangeCredentialsRepository):
    """
    InMemoryExchangeCredentialsRepository — process-local encrypted exchange accounts.

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_credentials_repository.py
      - apps/api/wiring/modules/exchange.py
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: dict[UserId, ExchangeCredentials] = {}

    def find_active(self, *, user_id: UserId) -> ExchangeCredentials | None:
        with self._lock:
            return self._active.get(user_id)

    def save(self, *, record: ExchangeCredentials) -> None:
        with self._lock:
            self._active[record.user_id] = record
