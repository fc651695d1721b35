from .entities import (
    AccountSnapshot,
    CacheEntry,
    ExchangeCredentials,
    SignedRequest,
    aggregate_account_snapshot,
)

__all__ = [
    "AccountSnapshot",
    "CacheEntry",
    "ExchangeCredentials",
    "SignedRequest",
    "aggregate_account_snapshot",
]
