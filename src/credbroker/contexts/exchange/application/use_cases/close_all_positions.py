from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.contexts.exchange.application.ports import ExchangeCredentialsRepository
from credbroker.contexts.exchange.application.services import ExchangeSessionFactory
from credbroker.contexts.exchange.application.use_cases.active_exchange_session import (
    open_active_exchange_client,
)
from credbroker.contexts.exchange.domain.entities import to_decimal
from credbroker.platform.errors import BrokerError
from credbroker.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClosedPosition:
    symbol: str
    side: str
    quantity: Decimal
    order_id: str | None


@dataclass(frozen=True, slots=True)
class PositionCloseFailure:
    symbol: str
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class CloseAllPositionsResult:
    closed: tuple[ClosedPosition, ...]
    failures: tuple[PositionCloseFailure, ...]

    @property
    def success(self) -> bool:
        return not self.failures


class CloseAllPositionsUseCase:
    """
    CloseAllPositionsUseCase — flatten every open futures position with MARKET orders.

    Always reads live position risk: a trading decision must not act on cached rows.

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_client.py
      - apps/api/routes/exchange.py
    """

    def __init__(
        self,
        *,
        repository: ExchangeCredentialsRepository,
        session_factory: ExchangeSessionFactory,
    ) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("CloseAllPositionsUseCase requires repository")
        if session_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("CloseAllPositionsUseCase requires session_factory")
        self._repository = repository
        self._session_factory = session_factory

    def close_all(self, *, user_id: UserId) -> CloseAllPositionsResult:
        """
        Send one opposite-side MARKET order per open position.

        Args:
            user_id: Owner user id.
        Returns:
            CloseAllPositionsResult: Closed positions and per-symbol failures.
        Assumptions:
            One symbol failing does not stop the remaining orders.
        Raises:
            ExchangeCredentialsNotFoundError: If user has no active account.
            DecryptionError: If stored credentials are unusable.
            UpstreamError: If position risk cannot be fetched.
        Side Effects:
            Places live orders on the exchange.
        """
        client = open_active_exchange_client(
            repository=self._repository,
            session_factory=self._session_factory,
            user_id=user_id,
        )
        positions = client.get_position_risk()
        if not isinstance(positions, list):
            raise UpstreamError(
                path="/fapi/v2/positionRisk",
                body=str(positions)[:500],
                reason="unexpected_payload",
            )

        closed: list[ClosedPosition] = []
        failures: list[PositionCloseFailure] = []
        for row in positions:
            amount = to_decimal(row.get("positionAmt"))
            if amount == 0:
                continue
            symbol = str(row.get("symbol", ""))
            side = "SELL" if amount > 0 else "BUY"
            quantity = abs(amount)
            try:
                ack = client.place_market_order(symbol=symbol, side=side, quantity=quantity)
            except BrokerError as error:
                log.warning(
                    "position close failed user_id=%s symbol=%s code=%s",
                    user_id,
                    symbol,
                    error.code,
                )
                failures.append(
                    PositionCloseFailure(symbol=symbol, code=error.code, message=error.message)
                )
                continue
            closed.append(
                ClosedPosition(
                    symbol=symbol,
                    side=side,
                    quantity=quantity,
                    order_id=_order_id(ack=ack),
                )
            )

        log.info(
            "close all positions finished user_id=%s closed=%s failed=%s",
            user_id,
            len(closed),
            len(failures),
        )
        return CloseAllPositionsResult(closed=tuple(closed), failures=tuple(failures))


def _order_id(*, ack: Any) -> str | None:
    if isinstance(ack, dict) and ack.get("orderId") is not None:
        return str(ack["orderId"])
    return None
