from .in_memory import InMemoryStoredSecretsRepository

__all__ = ["InMemoryStoredSecretsRepository"]
