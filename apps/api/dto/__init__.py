from .exchange import (
    AccountSnapshotResponse,
    CloseAllPositionsResponse,
    ConnectionTestResponse,
    DailyRealizedPnlResponse,
    ExchangeCredentialsResponse,
    ExchangeKeyPairRequest,
    RegisterExchangeCredentialsRequest,
)

__all__ = [
    "AccountSnapshotResponse",
    "CloseAllPositionsResponse",
    "ConnectionTestResponse",
    "DailyRealizedPnlResponse",
    "ExchangeCredentialsResponse",
    "ExchangeKeyPairRequest",
    "RegisterExchangeCredentialsRequest",
]
