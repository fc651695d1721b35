from __future__ import annotations

import logging
from dataclasses import dataclass, field

from credbroker.contexts.credentials.application.errors import DecryptionError
from credbroker.contexts.credentials.application.ports import (
    CredentialCipher,
    StoredSecretsRepository,
)
from credbroker.contexts.credentials.domain.entities import STORED_SECRET_FIELDS, StoredSecret

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FieldMigrationCounts:
    total: int = 0
    migrated: int = 0
    already_encrypted: int = 0
    errors: int = 0


@dataclass(slots=True)
class SecretMigrationReport:
    """
    SecretMigrationReport — per-field outcome counters of one plaintext migration run.
    """

    by_field: dict[str, FieldMigrationCounts] = field(
        default_factory=lambda: {name: FieldMigrationCounts() for name in STORED_SECRET_FIELDS}
    )

    @property
    def total(self) -> int:
        return sum(counts.total for counts in self.by_field.values())

    @property
    def migrated(self) -> int:
        return sum(counts.migrated for counts in self.by_field.values())

    @property
    def already_encrypted(self) -> int:
        return sum(counts.already_encrypted for counts in self.by_field.values())

    @property
    def errors(self) -> int:
        return sum(counts.errors for counts in self.by_field.values())


def looks_encrypted(*, cipher: CredentialCipher, value: str) -> bool:
    """
    Detect already-encrypted values by speculative decryption.

    Args:
        cipher: Cipher configured with the deployment master key.
        value: Stored column value.
    Returns:
        bool: `True` when the value decrypts under the current master key.
    Assumptions:
        Best-effort heuristic: a value encrypted under a different key is reported as
        plaintext and would be double-encrypted, so callers verify outcomes explicitly.
    Raises:
        None.
    Side Effects:
        None.
    """
    try:
        cipher.decrypt(blob=value)
    except DecryptionError:
        return False
    return True


class EncryptPlaintextSecretsUseCase:
    """
    EncryptPlaintextSecretsUseCase — encrypt legacy plaintext secret columns in place.

    Related:
      - src/credbroker/contexts/credentials/application/ports/stored_secrets_repository.py
      - src/credbroker/contexts/credentials/application/ports/credential_cipher.py
      - apps/cli/commands/secrets.py
    """

    def __init__(
        self,
        *,
        repository: StoredSecretsRepository,
        cipher: CredentialCipher,
    ) -> None:
        """
        Initialize migration dependencies.

        Args:
            repository: Stored secrets storage port.
            cipher: Credential cipher port.
        Returns:
            None.
        Assumptions:
            Dependencies are initialized and non-null.
        Raises:
            ValueError: If any dependency is missing.
        Side Effects:
            None.
        """
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("EncryptPlaintextSecretsUseCase requires repository")
        if cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("EncryptPlaintextSecretsUseCase requires cipher")
        self._repository = repository
        self._cipher = cipher

    def run(self) -> SecretMigrationReport:
        """
        Encrypt every stored value that does not already decrypt under the master key.

        Args:
            None.
        Returns:
            SecretMigrationReport: Per-field counters.
        Assumptions:
            Each new blob is decrypted back and compared before it is persisted.
        Raises:
            ConfigurationError: If cipher master key is unusable.
        Side Effects:
            Rewrites plaintext rows in storage and emits logs without secret values.
        """
        report = SecretMigrationReport()
        for row in self._repository.list_all():
            counts = report.by_field[row.field_name]
            counts.total += 1
            if looks_encrypted(cipher=self._cipher, value=row.value):
                counts.already_encrypted += 1
                log.info(
                    "secret migration skipped reason=already_encrypted record_id=%s field=%s",
                    row.record_id,
                    row.field_name,
                )
                continue
            if self._migrate_row(row=row):
                counts.migrated += 1
            else:
                counts.errors += 1

        log.info(
            "secret migration finished total=%s migrated=%s already_encrypted=%s errors=%s",
            report.total,
            report.migrated,
            report.already_encrypted,
            report.errors,
        )
        return report

    def _migrate_row(self, *, row: StoredSecret) -> bool:
        """
        Encrypt one row, verify the roundtrip, and persist it.

        Args:
            row: Stored secret believed to be plaintext.
        Returns:
            bool: `True` when the row was rewritten.
        Assumptions:
            Per-row failures must not abort the whole migration run.
        Raises:
            None.
        Side Effects:
            Writes one row and logs outcome.
        """
        try:
            blob = self._cipher.encrypt(plaintext=row.value)
            if self._cipher.decrypt(blob=blob) != row.value:
                log.error(
                    "secret migration failed reason=roundtrip_mismatch record_id=%s field=%s",
                    row.record_id,
                    row.field_name,
                )
                return False
            updated = self._repository.replace_value(
                record_id=row.record_id,
                field_name=row.field_name,
                value=blob,
            )
        except DecryptionError:
            log.exception(
                "secret migration failed reason=verification record_id=%s field=%s",
                row.record_id,
                row.field_name,
            )
            return False
        except Exception:  # noqa: BLE001
            log.exception(
                "secret migration failed record_id=%s field=%s",
                row.record_id,
                row.field_name,
            )
            return False

        if not updated:
            log.warning(
                "secret migration failed reason=row_missing record_id=%s field=%s",
                row.record_id,
                row.field_name,
            )
            return False
        log.info(
            "secret migration encrypted record_id=%s field=%s",
            row.record_id,
            row.field_name,
        )
        return True
