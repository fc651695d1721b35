from .application import (
    CachedFetcher,
    ExchangeCredentialsNotFoundError,
    SignatureError,
    UpstreamError,
    build_authenticated_request,
    canonical_query_string,
    sign_query,
)
from .domain import AccountSnapshot, CacheEntry, ExchangeCredentials, SignedRequest

__all__ = [
    "AccountSnapshot",
    "CacheEntry",
    "CachedFetcher",
    "ExchangeCredentials",
    "ExchangeCredentialsNotFoundError",
    "SignatureError",
    "SignedRequest",
    "UpstreamError",
    "build_authenticated_request",
    "canonical_query_string",
    "sign_query",
]
