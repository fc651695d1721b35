from .stored_secrets_repository import InMemoryStoredSecretsRepository

__all__ = ["InMemoryStoredSecretsRepository"]
