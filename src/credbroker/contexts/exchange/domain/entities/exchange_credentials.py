from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from credbroker.shared_kernel.primitives import UserId


@dataclass(frozen=True, slots=True)
class ExchangeCredentials:
    """
    ExchangeCredentials — stored exchange account with encrypted API key pair.

    Both `api_key_enc` and `api_secret_enc` are blobs produced by `CredentialCipher`.

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_credentials_repository.py
      - src/credbroker/contexts/exchange/application/services/exchange_session_factory.py
    """

    user_id: UserId
    account_name: str
    api_key_enc: str
    api_secret_enc: str
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.account_name.strip():
            raise ValueError("ExchangeCredentials.account_name must be non-empty")
        if not self.api_key_enc or not self.api_secret_enc:
            raise ValueError("ExchangeCredentials requires encrypted key and secret")
        if self.created_at.tzinfo is None:
            raise ValueError("ExchangeCredentials.created_at must be timezone-aware")

    def __repr__(self) -> str:
        return (
            f"ExchangeCredentials(user_id={self.user_id!s}, "
            f"account_name={self.account_name!r}, created_at={self.created_at.isoformat()})"
        )
