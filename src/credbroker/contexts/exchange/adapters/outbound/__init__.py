from .cache import InMemoryResponseCache, RedisResponseCache, RedisResponseCacheConfig
from .clients.binance import (
    BinanceFuturesClientConfig,
    BinanceFuturesClientFactory,
    BinanceFuturesRestClient,
)
from .config import (
    ExchangeRuntimeConfig,
    ResponseCacheRuntimeConfig,
    load_exchange_runtime_config,
    parse_exchange_runtime_config,
    resolve_exchange_config_path,
)
from .persistence import InMemoryExchangeCredentialsRepository

__all__ = [
    "BinanceFuturesClientConfig",
    "BinanceFuturesClientFactory",
    "BinanceFuturesRestClient",
    "ExchangeRuntimeConfig",
    "InMemoryExchangeCredentialsRepository",
    "InMemoryResponseCache",
    "RedisResponseCache",
    "RedisResponseCacheConfig",
    "ResponseCacheRuntimeConfig",
    "load_exchange_runtime_config",
    "parse_exchange_runtime_config",
    "resolve_exchange_config_path",
]
