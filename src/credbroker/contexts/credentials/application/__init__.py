from .errors import ConfigurationError, DecryptionError
from .ports import CredentialCipher, StoredSecretsRepository
from .use_cases import EncryptPlaintextSecretsUseCase, SecretMigrationReport, looks_encrypted

__all__ = [
    "ConfigurationError",
    "CredentialCipher",
    "DecryptionError",
    "EncryptPlaintextSecretsUseCase",
    "SecretMigrationReport",
    "StoredSecretsRepository",
    "looks_encrypted",
]
