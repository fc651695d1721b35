"""
Pydantic API models and converters for exchange account endpoints.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from credbroker.contexts.exchange.application.use_cases import (
    CloseAllPositionsResult,
    ConnectionTestResult,
    DailyRealizedPnl,
    ExchangeCredentialsView,
)
from credbroker.contexts.exchange.domain.entities import AccountSnapshot


class ExchangeKeyPairRequest(BaseModel):
    """
    Request body carrying a plain exchange key pair.

    Related:
      - apps/api/routes/exchange.py
      - src/credbroker/contexts/exchange/application/use_cases/test_exchange_connection.py
    """

    api_key: str = Field(min_length=1, max_length=256)
    api_secret: str = Field(min_length=1, max_length=256)


class RegisterExchangeCredentialsRequest(ExchangeKeyPairRequest):
    account_name: str | None = Field(default=None, max_length=64)


class ExchangeCredentialsResponse(BaseModel):
    user_id: str
    account_name: str
    api_key_last4: str
    created_at: datetime


class ConnectionTestResponse(BaseModel):
    success: bool
    code: str
    message: str
    total_wallet_balance: str | None = None


class BalanceResponse(BaseModel):
    total: str
    available: str
    cross_wallet: str


class PnlResponse(BaseModel):
    today: str
    today_percent: str
    unrealized: str


class PositionResponse(BaseModel):
    symbol: str
    amount: str
    entry_price: str
    mark_price: str
    unrealized_profit: str
    liquidation_price: str
    leverage: str
    margin_ratio: str


class RiskResponse(BaseModel):
    has_critical: bool
    critical_count: int
    critical_symbols: list[str]


class AccountSnapshotResponse(BaseModel):
    """
    API response for `GET /exchange/snapshot`.
    """

    balance: BalanceResponse
    pnl: PnlResponse
    positions: list[PositionResponse]
    risk: RiskResponse


class DailyRealizedPnlResponse(BaseModel):
    day: str
    realized_pnl: str
    trades_count: int


class ClosedPositionResponse(BaseModel):
    symbol: str
    side: str
    quantity: str
    order_id: str | None = None


class PositionCloseFailureResponse(BaseModel):
    symbol: str
    code: str
    message: str


class CloseAllPositionsResponse(BaseModel):
    success: bool
    closed: list[ClosedPositionResponse]
    failures: list[PositionCloseFailureResponse]


def build_exchange_credentials_response(
    *,
    view: ExchangeCredentialsView,
) -> ExchangeCredentialsResponse:
    return ExchangeCredentialsResponse(
        user_id=str(view.user_id),
        account_name=view.account_name,
        api_key_last4=view.api_key_last4,
        created_at=view.created_at,
    )


def build_connection_test_response(*, result: ConnectionTestResult) -> ConnectionTestResponse:
    return ConnectionTestResponse(
        success=result.success,
        code=result.code,
        message=result.message,
        total_wallet_balance=result.total_wallet_balance,
    )


def build_account_snapshot_response(*, snapshot: AccountSnapshot) -> AccountSnapshotResponse:
    """
    Convert domain snapshot into API response model.

    Args:
        snapshot: Aggregated account snapshot.
    Returns:
        AccountSnapshotResponse: Pydantic response model.
    Assumptions:
        Decimal amounts stay as strings to avoid float rounding in JSON.
    Raises:
        None.
    Side Effects:
        None.
    """
    return AccountSnapshotResponse(
        balance=BalanceResponse(
            total=snapshot.balance.total,
            available=snapshot.balance.available,
            cross_wallet=snapshot.balance.cross_wallet,
        ),
        pnl=PnlResponse(
            today=snapshot.pnl.today,
            today_percent=snapshot.pnl.today_percent,
            unrealized=snapshot.pnl.unrealized,
        ),
        positions=[
            PositionResponse(
                symbol=item.symbol,
                amount=item.amount,
                entry_price=item.entry_price,
                mark_price=item.mark_price,
                unrealized_profit=item.unrealized_profit,
                liquidation_price=item.liquidation_price,
                leverage=item.leverage,
                margin_ratio=item.margin_ratio,
            )
            for item in snapshot.positions
        ],
        risk=RiskResponse(
            has_critical=snapshot.risk.has_critical,
            critical_count=snapshot.risk.critical_count,
            critical_symbols=list(snapshot.risk.critical_symbols),
        ),
    )


def build_daily_realized_pnl_response(*, result: DailyRealizedPnl) -> DailyRealizedPnlResponse:
    return DailyRealizedPnlResponse(
        day=result.day.isoformat(),
        realized_pnl=str(result.realized_pnl),
        trades_count=result.trades_count,
    )


def build_close_all_positions_response(
    *,
    result: CloseAllPositionsResult,
) -> CloseAllPositionsResponse:
    return CloseAllPositionsResponse(
        success=result.success,
        closed=[
            ClosedPositionResponse(
                symbol=item.symbol,
                side=item.side,
                quantity=format(item.quantity, "f"),
                order_id=item.order_id,
            )
            for item in result.closed
        ],
        failures=[
            PositionCloseFailureResponse(symbol=item.symbol, code=item.code, message=item.message)
            for item in result.failures
        ],
    )
