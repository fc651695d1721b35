from .exchange_runtime_config import (
    ExchangeRuntimeConfig,
    ResponseCacheRuntimeConfig,
    load_exchange_runtime_config,
    parse_exchange_runtime_config,
    resolve_exchange_config_path,
)

__all__ = [
    "ExchangeRuntimeConfig",
    "ResponseCacheRuntimeConfig",
    "load_exchange_runtime_config",
    "parse_exchange_runtime_config",
    "resolve_exchange_config_path",
]
