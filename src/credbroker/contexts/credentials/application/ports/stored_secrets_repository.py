from __future__ import annotations

from typing import Protocol

from credbroker.contexts.credentials.domain.entities import StoredSecret


class StoredSecretsRepository(Protocol):
    """
    StoredSecretsRepository — storage port listing secret-bearing columns for migration.

    Related:
      - src/credbroker/contexts/credentials/application/use_cases/encrypt_plaintext_secrets.py
      - src/credbroker/contexts/credentials/adapters/outbound/persistence/in_memory/
        stored_secrets_repository.py
    """

    def list_all(self) -> tuple[StoredSecret, ...]:
        """
        Return every stored secret value in deterministic order.

        Args:
            None.
        Returns:
            tuple[StoredSecret, ...]: Snapshot of stored secret values.
        Assumptions:
            Values may be ciphertext blobs or legacy plaintext.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Reads storage.
        """
        ...

    def replace_value(self, *, record_id: str, field_name: str, value: str) -> bool:
        """
        Overwrite one stored secret value.

        Args:
            record_id: Owning record identifier.
            field_name: Secret column name.
            value: New stored value (ciphertext blob).
        Returns:
            bool: `True` when a row was updated, `False` when it no longer exists.
        Assumptions:
            Caller verified the new blob before writing.
        Raises:
            Exception: Adapter-specific storage errors.
        Side Effects:
            Writes storage.
        """
        ...
