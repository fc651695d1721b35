from .master_key_settings import (
    MASTER_KEY_ENV_KEY,
    MASTER_KEY_LENGTH,
    MasterKeySettings,
    resolve_master_key_settings,
)

__all__ = [
    "MASTER_KEY_ENV_KEY",
    "MASTER_KEY_LENGTH",
    "MasterKeySettings",
    "resolve_master_key_settings",
]
