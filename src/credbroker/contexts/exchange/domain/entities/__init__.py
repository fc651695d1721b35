from .account_snapshot import (
    AccountSnapshot,
    BalanceSummary,
    PnlSummary,
    PositionView,
    RiskSummary,
    aggregate_account_snapshot,
    to_decimal,
)
from .cache_entry import CacheEntry
from .exchange_credentials import ExchangeCredentials
from .signed_request import API_KEY_HEADER, SignedRequest

__all__ = [
    "API_KEY_HEADER",
    "AccountSnapshot",
    "BalanceSummary",
    "CacheEntry",
    "ExchangeCredentials",
    "PnlSummary",
    "PositionView",
    "RiskSummary",
    "SignedRequest",
    "aggregate_account_snapshot",
    "to_decimal",
]
