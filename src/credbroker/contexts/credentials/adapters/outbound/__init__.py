from .config import MasterKeySettings, resolve_master_key_settings
from .persistence import InMemoryStoredSecretsRepository
from .security import AesGcmCredentialCipher

__all__ = [
    "AesGcmCredentialCipher",
    "InMemoryStoredSecretsRepository",
    "MasterKeySettings",
    "resolve_master_key_settings",
]
