from .exchange_credentials_repository import InMemoryExchangeCredentialsRepository

__all__ = ["InMemoryExchangeCredentialsRepository"]
