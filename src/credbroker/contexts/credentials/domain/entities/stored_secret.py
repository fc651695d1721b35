from __future__ import annotations

from dataclasses import dataclass

from credbroker.shared_kernel.primitives import UserId

STORED_SECRET_FIELDS = ("api_key", "api_secret", "totp_secret")


@dataclass(frozen=True, slots=True)
class StoredSecret:
    """
    StoredSecret — one secret-bearing column value as persisted by the host application.

    Related:
      - src/credbroker/contexts/credentials/application/ports/stored_secrets_repository.py
      - src/credbroker/contexts/credentials/application/use_cases/encrypt_plaintext_secrets.py
    """

    record_id: str
    user_id: UserId
    field_name: str
    value: str

    def __post_init__(self) -> None:
        """
        Validate record identity and supported field name.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Value may be empty or legacy plaintext; it is never inspected here.
        Raises:
            ValueError: If record id is blank or field name is unsupported.
        Side Effects:
            None.
        """
        if not self.record_id.strip():
            raise ValueError("StoredSecret.record_id must be non-empty")
        if self.field_name not in STORED_SECRET_FIELDS:
            raise ValueError(
                f"StoredSecret.field_name must be one of {STORED_SECRET_FIELDS}, "
                f"got {self.field_name!r}"
            )

    def __repr__(self) -> str:
        return (
            f"StoredSecret(record_id={self.record_id!r}, user_id={self.user_id!s}, "
            f"field_name={self.field_name!r}, value=<redacted>)"
        )
