from .credential_cipher import CredentialCipher
from .stored_secrets_repository import StoredSecretsRepository

__all__ = [
    "CredentialCipher",
    "StoredSecretsRepository",
]
