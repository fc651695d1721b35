from __future__ import annotations

import threading

from credbroker.contexts.credentials.application.ports.stored_secrets_repository import (
    StoredSecretsRepository,
)
from credbroker.contexts.credentials.domain.entities import StoredSecret


class InMemoryStoredSecretsRepository(StoredSecretsRepository):
    """
    InMemoryStoredSecretsRepository — process-local stored secrets for tests and dev runs.

    Related:
      - src/credbroker/contexts/credentials/application/ports/stored_secrets_repository.py
      - tests/unit/contexts/credentials/application/test_encrypt_plaintext_secrets.py
    """

    def __init__(self, *, rows: tuple[StoredSecret, ...] = ()) -> None:
        self._lock = threading.Lock()
        self._rows: dict[tuple[str, str], StoredSecret] = {
            (row.record_id, row.field_name): row for row in rows
        }

    def list_all(self) -> tuple[StoredSecret, ...]:
        with self._lock:
            return tuple(
                self._rows[key] for key in sorted(self._rows.keys())
            )

    def replace_value(self, *, record_id: str, field_name: str, value: str) -> bool:
        key = (record_id, field_name)
        with self._lock:
            existing = self._rows.get(key)
            if existing is None:
                return False
            self._rows[key] = StoredSecret(
                record_id=existing.record_id,
                user_id=existing.user_id,
                field_name=existing.field_name,
                value=value,
            )
            return True

    def value_of(self, *, record_id: str, field_name: str) -> str | None:
        with self._lock:
            row = self._rows.get((record_id, field_name))
            return row.value if row is not None else None
