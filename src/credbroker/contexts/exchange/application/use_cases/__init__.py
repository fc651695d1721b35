from .active_exchange_session import open_active_exchange_client
from .close_all_positions import (
    CloseAllPositionsResult,
    CloseAllPositionsUseCase,
    ClosedPosition,
    PositionCloseFailure,
)
from .get_daily_realized_pnl import (
    DailyRealizedPnl,
    GetDailyRealizedPnlUseCase,
    utc_day_window_ms,
)
from .load_account_snapshot import (
    REALIZED_PNL_INCOME_TYPE,
    LoadAccountSnapshotUseCase,
    utc_day_start_ms,
)
from .register_exchange_credentials import (
    ExchangeCredentialsView,
    RegisterExchangeCredentialsUseCase,
)
from .test_exchange_connection import (
    CONNECTION_TEST_RECV_WINDOW_MS,
    ConnectionTestResult,
    TestExchangeConnectionUseCase,
)

__all__ = [
    "CONNECTION_TEST_RECV_WINDOW_MS",
    "REALIZED_PNL_INCOME_TYPE",
    "CloseAllPositionsResult",
    "CloseAllPositionsUseCase",
    "ClosedPosition",
    "ConnectionTestResult",
    "DailyRealizedPnl",
    "ExchangeCredentialsView",
    "GetDailyRealizedPnlUseCase",
    "LoadAccountSnapshotUseCase",
    "PositionCloseFailure",
    "RegisterExchangeCredentialsUseCase",
    "TestExchangeConnectionUseCase",
    "open_active_exchange_client",
    "utc_day_start_ms",
    "utc_day_window_ms",
]
