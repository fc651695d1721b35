from .futures_rest_client import (
    ACCOUNT_PATH,
    BALANCE_PATH,
    BINANCE_FUTURES_MAINNET,
    INCOME_PATH,
    ORDER_PATH,
    POSITION_RISK_PATH,
    BinanceFuturesClientConfig,
    BinanceFuturesClientFactory,
    BinanceFuturesRestClient,
)

__all__ = [
    "ACCOUNT_PATH",
    "BALANCE_PATH",
    "BINANCE_FUTURES_MAINNET",
    "INCOME_PATH",
    "ORDER_PATH",
    "POSITION_RISK_PATH",
    "BinanceFuturesClientConfig",
    "BinanceFuturesClientFactory",
    "BinanceFuturesRestClient",
]
