from __future__ import annotations

from uuid import UUID

from credbroker.contexts.credentials.adapters.outbound import (
    AesGcmCredentialCipher,
    InMemoryStoredSecretsRepository,
    MasterKeySettings,
)
from credbroker.contexts.credentials.application import (
    EncryptPlaintextSecretsUseCase,
    looks_encrypted,
)
from credbroker.contexts.credentials.domain import StoredSecret
from credbroker.shared_kernel.primitives import UserId

_USER_ID = UserId(UUID("00000000-0000-0000-0000-000000000101"))


class _CorruptingCipher:
    """
    Cipher fake whose encrypt output never decrypts back to the input.
    """

    def __init__(self, inner: AesGcmCredentialCipher) -> None:
        self._inner = inner

    def encrypt(self, *, plaintext: str) -> str:
        return self._inner.encrypt(plaintext=plaintext + "-corrupted")

    def decrypt(self, *, blob: str) -> str:
        return self._inner.decrypt(blob=blob)


def _cipher() -> AesGcmCredentialCipher:
    return AesGcmCredentialCipher(settings=MasterKeySettings(key_material="migration-test-key"))


def test_encrypt_plaintext_secrets_migrates_plaintext_and_skips_encrypted() -> None:
    """
    Verify plaintext rows are encrypted in place while encrypted rows are left untouched.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Already-encrypted detection is speculative decryption under the current key.
    Raises:
        AssertionError: If counters or stored values are wrong.
    Side Effects:
        None.
    """
    cipher = _cipher()
    existing_blob = cipher.encrypt(plaintext="already-secret")
    repository = InMemoryStoredSecretsRepository(
        rows=(
            StoredSecret(record_id="acc-1", user_id=_USER_ID, field_name="api_key", value="AKIA1"),
            StoredSecret(
                record_id="acc-1",
                user_id=_USER_ID,
                field_name="api_secret",
                value=existing_blob,
            ),
            StoredSecret(
                record_id="usr-1",
                user_id=_USER_ID,
                field_name="totp_secret",
                value="JBSWY3DPEHPK3PXP",
            ),
        )
    )

    report = EncryptPlaintextSecretsUseCase(repository=repository, cipher=cipher).run()

    assert report.total == 3
    assert report.migrated == 2
    assert report.already_encrypted == 1
    assert report.errors == 0
    assert report.by_field["api_secret"].already_encrypted == 1
    migrated_key = repository.value_of(record_id="acc-1", field_name="api_key")
    assert migrated_key is not None and migrated_key != "AKIA1"
    assert cipher.decrypt(blob=migrated_key) == "AKIA1"
    assert repository.value_of(record_id="acc-1", field_name="api_secret") == existing_blob


def test_encrypt_plaintext_secrets_is_idempotent() -> None:
    """
    Verify a second run finds nothing left to migrate.
    """
    cipher = _cipher()
    repository = InMemoryStoredSecretsRepository(
        rows=(
            StoredSecret(record_id="acc-2", user_id=_USER_ID, field_name="api_key", value="AKIA2"),
        )
    )
    use_case = EncryptPlaintextSecretsUseCase(repository=repository, cipher=cipher)

    use_case.run()
    second = use_case.run()

    assert second.migrated == 0
    assert second.already_encrypted == 1


def test_encrypt_plaintext_secrets_does_not_persist_unverified_blob() -> None:
    """
    Verify a blob that fails the decrypt-and-compare check is counted as error and not saved.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Per-row failures do not abort the run.
    Raises:
        AssertionError: If the broken blob replaced the original value.
    Side Effects:
        None.
    """
    repository = InMemoryStoredSecretsRepository(
        rows=(
            StoredSecret(record_id="acc-3", user_id=_USER_ID, field_name="api_key", value="AKIA3"),
            StoredSecret(
                record_id="acc-3",
                user_id=_USER_ID,
                field_name="api_secret",
                value="plain-secret",
            ),
        )
    )

    report = EncryptPlaintextSecretsUseCase(
        repository=repository,
        cipher=_CorruptingCipher(_cipher()),
    ).run()

    assert report.errors == 2
    assert report.migrated == 0
    assert repository.value_of(record_id="acc-3", field_name="api_key") == "AKIA3"


def test_looks_encrypted_distinguishes_blob_from_plaintext() -> None:
    cipher = _cipher()

    assert looks_encrypted(cipher=cipher, value=cipher.encrypt(plaintext="x")) is True
    assert looks_encrypted(cipher=cipher, value="AKIAEXAMPLE123") is False
    assert looks_encrypted(cipher=cipher, value="") is False
