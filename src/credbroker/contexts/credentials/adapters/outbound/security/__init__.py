from .aes_gcm_credential_cipher import NONCE_LENGTH, TAG_LENGTH, AesGcmCredentialCipher

__all__ = [
    "AesGcmCredentialCipher",
    "NONCE_LENGTH",
    "TAG_LENGTH",
]
