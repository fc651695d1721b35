from __future__ import annotations

from typing import Protocol

from credbroker.contexts.exchange.domain.entities import ExchangeCredentials
from credbroker.shared_kernel.primitives import UserId


class ExchangeCredentialsRepository(Protocol):
    """
    ExchangeCredentialsRepository — storage port for encrypted exchange accounts.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/persistence/in_memory/
        exchange_credentials_repository.py
      - src/credbroker/contexts/exchange/application/use_cases/register_exchange_credentials.py
    """

    def find_active(self, *, user_id: UserId) -> ExchangeCredentials | None:
        """
        Return the active exchange account for user, or `None`.
        """
        ...

    def save(self, *, record: ExchangeCredentials) -> None:
        """
        Store record as the active account for its user, replacing any previous one.
        """
        ...
