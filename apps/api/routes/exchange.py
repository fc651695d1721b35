"""
Exchange account API routes: credentials registration, connection test, snapshot, PnL,
and emergency position close.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable

from fastapi import APIRouter, Depends, Query

from apps.api.dto.exchange import (
    AccountSnapshotResponse,
    CloseAllPositionsResponse,
    ConnectionTestResponse,
    DailyRealizedPnlResponse,
    ExchangeCredentialsResponse,
    ExchangeKeyPairRequest,
    RegisterExchangeCredentialsRequest,
    build_account_snapshot_response,
    build_close_all_positions_response,
    build_connection_test_response,
    build_daily_realized_pnl_response,
    build_exchange_credentials_response,
)
from credbroker.contexts.exchange.application.use_cases import (
    CloseAllPositionsUseCase,
    GetDailyRealizedPnlUseCase,
    LoadAccountSnapshotUseCase,
    RegisterExchangeCredentialsUseCase,
    TestExchangeConnectionUseCase,
)
from credbroker.shared_kernel.primitives import UserId

CurrentUserIdDependency = Callable[..., UserId]


def build_exchange_router(
    *,
    register_use_case: RegisterExchangeCredentialsUseCase,
    connection_test_use_case: TestExchangeConnectionUseCase,
    snapshot_use_case: LoadAccountSnapshotUseCase,
    daily_pnl_use_case: GetDailyRealizedPnlUseCase,
    close_all_use_case: CloseAllPositionsUseCase,
    current_user_dependency: CurrentUserIdDependency,
) -> APIRouter:
    """
    Build exchange API router.

    Related:
      - apps/api/dto/exchange.py
      - apps/api/wiring/modules/exchange.py
      - src/credbroker/contexts/exchange/application/use_cases/load_account_snapshot.py

    Args:
        register_use_case: Use-case storing encrypted key pair.
        connection_test_use_case: Use-case verifying plain key pair.
        snapshot_use_case: Use-case returning cached account snapshot.
        daily_pnl_use_case: Use-case summing realized PnL for one day.
        close_all_use_case: Use-case flattening open positions.
        current_user_dependency: Dependency resolving caller user id.
    Returns:
        APIRouter: Router with `/exchange/...` endpoints.
    Assumptions:
        Business rules live in use-cases; route layer maps transport only.
    Raises:
        ValueError: If one of required dependencies is missing.
    Side Effects:
        None.
    """
    if register_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires register_use_case")
    if connection_test_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires connection_test_use_case")
    if snapshot_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires snapshot_use_case")
    if daily_pnl_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires daily_pnl_use_case")
    if close_all_use_case is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires close_all_use_case")
    if current_user_dependency is None:  # type: ignore[truthy-bool]
        raise ValueError("build_exchange_router requires current_user_dependency")

    router = APIRouter(tags=["exchange"])

    @router.post(
        "/exchange/credentials",
        response_model=ExchangeCredentialsResponse,
        status_code=201,
    )
    def post_exchange_credentials(
        request: RegisterExchangeCredentialsRequest,
        user_id: UserId = Depends(current_user_dependency),
    ) -> ExchangeCredentialsResponse:
        """
        Verify, encrypt and store caller's exchange key pair.

        Args:
            request: Key pair and optional account name.
            user_id: Caller user id.
        Returns:
            ExchangeCredentialsResponse: Stored account projection without secrets.
        Assumptions:
            Registering again replaces the active account.
        Raises:
            BrokerError: Mapped to HTTP by shared error handlers.
        Side Effects:
            One outbound verification request and one repository write.
        """
        view = register_use_case.register(
            user_id=user_id,
            api_key=request.api_key,
            api_secret=request.api_secret,
            account_name=request.account_name,
        )
        return build_exchange_credentials_response(view=view)

    @router.post("/exchange/connection-test", response_model=ConnectionTestResponse)
    def post_exchange_connection_test(
        request: ExchangeKeyPairRequest,
        _user_id: UserId = Depends(current_user_dependency),
    ) -> ConnectionTestResponse:
        result = connection_test_use_case.test(
            api_key=request.api_key,
            api_secret=request.api_secret,
        )
        return build_connection_test_response(result=result)

    @router.get("/exchange/snapshot", response_model=AccountSnapshotResponse)
    def get_exchange_snapshot(
        initial_balance: Decimal | None = Query(default=None, gt=0),
        user_id: UserId = Depends(current_user_dependency),
    ) -> AccountSnapshotResponse:
        snapshot = snapshot_use_case.load(user_id=user_id, initial_balance=initial_balance)
        return build_account_snapshot_response(snapshot=snapshot)

    @router.get("/exchange/daily-pnl", response_model=DailyRealizedPnlResponse)
    def get_exchange_daily_pnl(
        day: date = Query(...),
        user_id: UserId = Depends(current_user_dependency),
    ) -> DailyRealizedPnlResponse:
        result = daily_pnl_use_case.get(user_id=user_id, day=day)
        return build_daily_realized_pnl_response(result=result)

    @router.post(
        "/exchange/positions/close-all",
        response_model=CloseAllPositionsResponse,
    )
    def post_exchange_close_all_positions(
        user_id: UserId = Depends(current_user_dependency),
    ) -> CloseAllPositionsResponse:
        result = close_all_use_case.close_all(user_id=user_id)
        return build_close_all_positions_response(result=result)

    return router


__all__ = ["build_exchange_router"]
