from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from credbroker.contexts.credentials.adapters.outbound.config.master_key_settings import (
    MasterKeySettings,
)
from credbroker.contexts.credentials.application.errors import (
    ConfigurationError,
    DecryptionError,
)
from credbroker.contexts.credentials.application.ports.credential_cipher import (
    CredentialCipher,
)

NONCE_LENGTH = 12
TAG_LENGTH = 16


class AesGcmCredentialCipher(CredentialCipher):
    """
    AesGcmCredentialCipher — AES-256-GCM cipher for exchange API keys and TOTP seeds.

    Blob layout: `base64(nonce[12] || ciphertext || tag[16])`.

    Related:
      - src/credbroker/contexts/credentials/application/ports/credential_cipher.py
      - src/credbroker/contexts/credentials/adapters/outbound/config/master_key_settings.py
      - apps/api/wiring/modules/exchange.py
    """

    def __init__(self, *, settings: MasterKeySettings) -> None:
        """
        Initialize cipher from resolved master key settings.

        Args:
            settings: Master key settings resolved at startup.
        Returns:
            None.
        Assumptions:
            Settings are resolved once and shared for the process lifetime.
        Raises:
            ConfigurationError: If settings are missing.
        Side Effects:
            None.
        """
        if settings is None:  # type: ignore[truthy-bool]
            raise ConfigurationError(message="AesGcmCredentialCipher requires master key settings")
        self._aesgcm = AESGCM(settings.derive_key())

    def encrypt(self, *, plaintext: str) -> str:
        """
        Encrypt plaintext under a fresh random nonce.

        Args:
            plaintext: Any UTF-8 string, including empty string.
        Returns:
            str: Base64 blob `nonce || ciphertext+tag`.
        Assumptions:
            Callers bound plaintext length upstream.
        Raises:
            TypeError: If plaintext is not a string.
        Side Effects:
            Uses OS CSPRNG for the nonce.
        """
        if not isinstance(plaintext, str):
            raise TypeError("AesGcmCredentialCipher.encrypt requires str plaintext")
        nonce = os.urandom(NONCE_LENGTH)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, *, blob: str) -> str:
        """
        Decrypt blob and verify its authentication tag.

        Args:
            blob: Base64 blob produced by `encrypt`.
        Returns:
            str: Original plaintext.
        Assumptions:
            Any failure means the stored credentials are unusable; no recovery is attempted.
        Raises:
            DecryptionError: If blob is malformed, too short, fails tag verification,
                or decrypts to invalid UTF-8.
        Side Effects:
            None.
        """
        if not isinstance(blob, str):
            raise DecryptionError(reason="malformed_blob")
        try:
            raw = base64.b64decode(blob.strip(), validate=True)
        except (binascii.Error, ValueError) as error:
            raise DecryptionError(reason="malformed_blob") from error

        if len(raw) < NONCE_LENGTH + TAG_LENGTH:
            raise DecryptionError(reason="truncated_blob")

        nonce = raw[:NONCE_LENGTH]
        sealed = raw[NONCE_LENGTH:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, sealed, None)
        except InvalidTag as error:
            raise DecryptionError(reason="authentication_failed") from error

        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as error:
            raise DecryptionError(reason="invalid_plaintext_encoding") from error
