from __future__ import annotations

from credbroker.contexts.exchange.application.errors import ExchangeCredentialsNotFoundError
from credbroker.contexts.exchange.application.ports import (
    ExchangeClient,
    ExchangeCredentialsRepository,
)
from credbroker.contexts.exchange.application.services import ExchangeSessionFactory
from credbroker.shared_kernel.primitives import UserId


def open_active_exchange_client(
    *,
    repository: ExchangeCredentialsRepository,
    session_factory: ExchangeSessionFactory,
    user_id: UserId,
) -> ExchangeClient:
    """
    Load user's active exchange account and bind its decrypted key pair to a client.

    Args:
        repository: Exchange credentials storage port.
        session_factory: Decrypting client factory.
        user_id: Owner user id.
    Returns:
        ExchangeClient: Client ready for signed calls.
    Assumptions:
        Exactly one active account per user is used.
    Raises:
        ExchangeCredentialsNotFoundError: If user has no active account.
        DecryptionError: If stored blobs cannot be decrypted.
    Side Effects:
        Reads repository.
    """
    record = repository.find_active(user_id=user_id)
    if record is None:
        raise ExchangeCredentialsNotFoundError()
    return session_factory.open(credentials=record)
