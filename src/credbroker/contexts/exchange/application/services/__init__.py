from .cache_sweeper import DEFAULT_SWEEP_INTERVAL_SECONDS, CacheSweeper
from .cached_fetcher import DEFAULT_CACHE_TTL_SECONDS, CachedFetcher
from .exchange_session_factory import ExchangeSessionFactory
from .request_signing import (
    DEFAULT_RECV_WINDOW_MS,
    RequestSigner,
    build_authenticated_request,
    canonical_query_string,
    sign_query,
)

__all__ = [
    "DEFAULT_CACHE_TTL_SECONDS",
    "DEFAULT_RECV_WINDOW_MS",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "CacheSweeper",
    "CachedFetcher",
    "ExchangeSessionFactory",
    "RequestSigner",
    "build_authenticated_request",
    "canonical_query_string",
    "sign_query",
]
