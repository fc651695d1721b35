from .encrypt_plaintext_secrets import (
    EncryptPlaintextSecretsUseCase,
    FieldMigrationCounts,
    SecretMigrationReport,
    looks_encrypted,
)

__all__ = [
    "EncryptPlaintextSecretsUseCase",
    "FieldMigrationCounts",
    "SecretMigrationReport",
    "looks_encrypted",
]
