from .application import (
    ConfigurationError,
    CredentialCipher,
    DecryptionError,
    EncryptPlaintextSecretsUseCase,
    SecretMigrationReport,
    StoredSecretsRepository,
    looks_encrypted,
)
from .domain import StoredSecret

__all__ = [
    "ConfigurationError",
    "CredentialCipher",
    "DecryptionError",
    "EncryptPlaintextSecretsUseCase",
    "SecretMigrationReport",
    "StoredSecret",
    "StoredSecretsRepository",
    "looks_encrypted",
]
