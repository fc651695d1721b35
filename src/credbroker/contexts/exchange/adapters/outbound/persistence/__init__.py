from .in_memory import InMemoryExchangeCredentialsRepository

__all__ = ["InMemoryExchangeCredentialsRepository"]
