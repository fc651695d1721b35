from __future__ import annotations

from credbroker.contexts.credentials.application.ports import CredentialCipher
from credbroker.contexts.exchange.application.ports import (
    ExchangeClient,
    ExchangeClientFactory,
)
from credbroker.contexts.exchange.domain.entities import ExchangeCredentials


class ExchangeSessionFactory:
    """
    ExchangeSessionFactory — decrypts a stored key pair and binds it to an exchange client.

    Related:
      - src/credbroker/contexts/credentials/application/ports/credential_cipher.py
      - src/credbroker/contexts/exchange/application/ports/exchange_client.py
      - src/credbroker/contexts/exchange/application/use_cases/load_account_snapshot.py
    """

    def __init__(
        self,
        *,
        cipher: CredentialCipher,
        client_factory: ExchangeClientFactory,
    ) -> None:
        """
        Initialize factory dependencies.

        Args:
            cipher: Credential cipher port.
            client_factory: Exchange client factory port.
        Returns:
            None.
        Assumptions:
            Dependencies are initialized and non-null.
        Raises:
            ValueError: If any dependency is missing.
        Side Effects:
            None.
        """
        if cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("ExchangeSessionFactory requires cipher")
        if client_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("ExchangeSessionFactory requires client_factory")
        self._cipher = cipher
        self._client_factory = client_factory

    def open(self, *, credentials: ExchangeCredentials) -> ExchangeClient:
        """
        Decrypt stored credentials and build a bound exchange client.

        Args:
            credentials: Stored exchange account record.
        Returns:
            ExchangeClient: Client bound to decrypted key pair.
        Assumptions:
            Decrypted values live only inside the returned client.
        Raises:
            DecryptionError: If either blob cannot be decrypted.
        Side Effects:
            None.
        """
        api_key = self._cipher.decrypt(blob=credentials.api_key_enc)
        api_secret = self._cipher.decrypt(blob=credentials.api_secret_enc)
        return self._client_factory.build(api_key=api_key, api_secret=api_secret)
