from __future__ import annotations

from typing import Protocol


class CredentialCipher(Protocol):
    """
    CredentialCipher — envelope encryption port for stored third-party secrets.

    Related:
      - src/credbroker/contexts/credentials/adapters/outbound/security/
        aes_gcm_credential_cipher.py
      - src/credbroker/contexts/exchange/application/services/exchange_session_factory.py
      - src/credbroker/contexts/credentials/application/use_cases/encrypt_plaintext_secrets.py
    """

    def encrypt(self, *, plaintext: str) -> str:
        """
        Encrypt plaintext secret into storage-safe base64 blob.

        Args:
            plaintext: Any UTF-8 string (API key, API secret, TOTP seed).
        Returns:
            str: Printable blob safe for a text column.
        Assumptions:
            Plaintext is kept in-memory only and never logged.
        Raises:
            ConfigurationError: If master key is not configured.
        Side Effects:
            Draws a fresh random nonce.
        """
        ...

    def decrypt(self, *, blob: str) -> str:
        """
        Decrypt stored blob back into plaintext secret.

        Args:
            blob: Value previously produced by `encrypt`.
        Returns:
            str: Original plaintext.
        Assumptions:
            Decrypted value is used transiently and never exposed in API responses.
        Raises:
            DecryptionError: If blob is malformed, truncated, tampered, or keyed differently.
        Side Effects:
            None.
        """
        ...
