from .clock import ExchangeClock
from .exchange_client import ExchangeClient, ExchangeClientFactory
from .exchange_credentials_repository import ExchangeCredentialsRepository
from .http_session import ExchangeHttpResponse, ExchangeHttpSession
from .response_cache import ResponseCache

__all__ = [
    "ExchangeClient",
    "ExchangeClientFactory",
    "ExchangeClock",
    "ExchangeCredentialsRepository",
    "ExchangeHttpResponse",
    "ExchangeHttpSession",
    "ResponseCache",
]
