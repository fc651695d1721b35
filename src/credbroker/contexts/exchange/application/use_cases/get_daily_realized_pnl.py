from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.contexts.exchange.application.ports import ExchangeCredentialsRepository
from credbroker.contexts.exchange.application.services import ExchangeSessionFactory
from credbroker.contexts.exchange.application.use_cases.active_exchange_session import (
    open_active_exchange_client,
)
from credbroker.contexts.exchange.application.use_cases.load_account_snapshot import (
    REALIZED_PNL_INCOME_TYPE,
)
from credbroker.contexts.exchange.domain.entities import to_decimal
from credbroker.shared_kernel.primitives import UserId


@dataclass(frozen=True, slots=True)
class DailyRealizedPnl:
    day: date
    realized_pnl: Decimal
    trades_count: int


class GetDailyRealizedPnlUseCase:
    """
    GetDailyRealizedPnlUseCase — sum realized PnL income rows for one UTC calendar day.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
      - apps/api/routes/exchange.py
    """

    def __init__(
        self,
        *,
        repository: ExchangeCredentialsRepository,
        session_factory: ExchangeSessionFactory,
    ) -> None:
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("GetDailyRealizedPnlUseCase requires repository")
        if session_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("GetDailyRealizedPnlUseCase requires session_factory")
        self._repository = repository
        self._session_factory = session_factory

    def get(self, *, user_id: UserId, day: date) -> DailyRealizedPnl:
        """
        Fetch and sum `REALIZED_PNL` income for `day`.

        Args:
            user_id: Owner user id.
            day: UTC calendar day.
        Returns:
            DailyRealizedPnl: Sum and number of income rows.
        Assumptions:
            Window is `[00:00:00.000, 23:59:59.999]` UTC.
        Raises:
            ExchangeCredentialsNotFoundError: If user has no active account.
            DecryptionError: If stored credentials are unusable.
            UpstreamError: On exchange failure or unexpected payload shape.
        Side Effects:
            One outbound HTTP request.
        """
        start_time_ms, end_time_ms = utc_day_window_ms(day=day)
        client = open_active_exchange_client(
            repository=self._repository,
            session_factory=self._session_factory,
            user_id=user_id,
        )
        rows = client.get_income(
            income_type=REALIZED_PNL_INCOME_TYPE,
            start_time_ms=start_time_ms,
            end_time_ms=end_time_ms,
        )
        if not isinstance(rows, list):
            raise UpstreamError(
                path="/fapi/v1/income",
                body=str(rows)[:500],
                reason="unexpected_payload",
            )
        total = sum((to_decimal(row.get("income")) for row in rows), Decimal("0"))
        return DailyRealizedPnl(day=day, realized_pnl=total, trades_count=len(rows))


def utc_day_window_ms(*, day: date) -> tuple[int, int]:
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000) - 1
