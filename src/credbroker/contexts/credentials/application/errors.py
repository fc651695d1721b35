from __future__ import annotations

from typing import Any, Mapping

from credbroker.platform.errors import BrokerError


class ConfigurationError(BrokerError):
    """
    ConfigurationError — master key is missing or unusable.

    Fatal for every cipher operation; callers fail the whole request instead of falling back.
    """

    default_code = "configuration_error"


class DecryptionError(BrokerError):
    """
    DecryptionError — stored credential blob cannot be decrypted.

    Raised for malformed base64, truncated blobs, authentication tag mismatch (tampering
    or wrong master key) and legacy plaintext values. Non-retryable: the stored
    credentials are unusable and the user must reconnect the exchange account.
    """

    default_code = "credentials_unusable"

    def __init__(
        self,
        *,
        message: str = "Stored credentials cannot be decrypted.",
        reason: str,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        merged_details: dict[str, Any] = {"reason": reason, "requires_reconnect": True}
        if details is not None:
            merged_details.update(details)
        super().__init__(message=message, details=merged_details)
        self.reason = reason
