from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from credbroker.contexts.credentials.application.errors import ConfigurationError

MASTER_KEY_ENV_KEY = "ENCRYPTION_KEY"
MASTER_KEY_LENGTH = 32


@dataclass(frozen=True, slots=True)
class MasterKeySettings:
    """
    MasterKeySettings — operator-supplied key material for the process-wide master key.

    Related:
      - src/credbroker/contexts/credentials/adapters/outbound/security/
        aes_gcm_credential_cipher.py
      - apps/api/wiring/modules/exchange.py
      - apps/cli/commands/secrets.py
    """

    key_material: str

    def __post_init__(self) -> None:
        """
        Validate configured key material is present.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Any non-blank string is accepted; normalization happens in `derive_key`.
        Raises:
            ConfigurationError: If key material is missing or blank.
        Side Effects:
            None.
        """
        if not isinstance(self.key_material, str) or not self.key_material.strip():
            raise ConfigurationError(message=f"{MASTER_KEY_ENV_KEY} not configured")

    def derive_key(self) -> bytes:
        """
        Normalize key material into exactly 32 bytes for AES-256-GCM.

        Args:
            None.
        Returns:
            bytes: UTF-8 key material truncated or right-padded with zero bytes to 32.
        Assumptions:
            Key material beyond 32 encoded bytes does not contribute to the key.
        Raises:
            None.
        Side Effects:
            None.
        """
        encoded = self.key_material.encode("utf-8")
        return encoded[:MASTER_KEY_LENGTH].ljust(MASTER_KEY_LENGTH, b"\x00")

    def __repr__(self) -> str:
        return "MasterKeySettings(key_material=<redacted>)"


def resolve_master_key_settings(*, environ: Mapping[str, str]) -> MasterKeySettings:
    """
    Resolve master key settings from runtime environment mapping.

    Args:
        environ: Runtime environment mapping.
    Returns:
        MasterKeySettings: Validated settings.
    Assumptions:
        Called once at process startup; the value is held only in memory.
    Raises:
        ConfigurationError: If `ENCRYPTION_KEY` is missing or blank.
    Side Effects:
        None.
    """
    return MasterKeySettings(key_material=environ.get(MASTER_KEY_ENV_KEY, ""))
