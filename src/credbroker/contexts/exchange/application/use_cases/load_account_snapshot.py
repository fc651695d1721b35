from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.contexts.exchange.application.ports import (
    ExchangeClock,
    ExchangeCredentialsRepository,
)
from credbroker.contexts.exchange.application.services import (
    CachedFetcher,
    ExchangeSessionFactory,
)
from credbroker.contexts.exchange.application.use_cases.active_exchange_session import (
    open_active_exchange_client,
)
from credbroker.contexts.exchange.domain.entities import (
    AccountSnapshot,
    aggregate_account_snapshot,
)
from credbroker.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)

REALIZED_PNL_INCOME_TYPE = "REALIZED_PNL"


class LoadAccountSnapshotUseCase:
    """
    LoadAccountSnapshotUseCase — dashboard snapshot of balance, PnL, positions and risk.

    Raw exchange rows are cached per user for the fetcher TTL, so dashboard polling and
    several open tabs cost at most one round of signed calls per window. Aggregation runs
    on every call because `initial_balance` is caller-specific.

    Related:
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
      - src/credbroker/contexts/exchange/domain/entities/account_snapshot.py
      - apps/api/routes/exchange.py
    """

    def __init__(
        self,
        *,
        repository: ExchangeCredentialsRepository,
        session_factory: ExchangeSessionFactory,
        fetcher: CachedFetcher,
        clock: ExchangeClock,
    ) -> None:
        """
        Initialize use-case dependencies.

        Args:
            repository: Exchange credentials storage port.
            session_factory: Decrypting client factory.
            fetcher: Per-user TTL cache with in-flight de-duplication.
            clock: Time source for the UTC day boundary.
        Returns:
            None.
        Assumptions:
            Dependencies are initialized and non-null.
        Raises:
            ValueError: If any dependency is missing.
        Side Effects:
            None.
        """
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("LoadAccountSnapshotUseCase requires repository")
        if session_factory is None:  # type: ignore[truthy-bool]
            raise ValueError("LoadAccountSnapshotUseCase requires session_factory")
        if fetcher is None:  # type: ignore[truthy-bool]
            raise ValueError("LoadAccountSnapshotUseCase requires fetcher")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("LoadAccountSnapshotUseCase requires clock")
        self._repository = repository
        self._session_factory = session_factory
        self._fetcher = fetcher
        self._clock = clock

    def load(
        self,
        *,
        user_id: UserId,
        initial_balance: Decimal | None = None,
    ) -> AccountSnapshot:
        """
        Return aggregated account snapshot for user.

        Args:
            user_id: Owner user id.
            initial_balance: Optional reference balance for today's PnL percent.
        Returns:
            AccountSnapshot: Aggregated snapshot.
        Assumptions:
            A failed fetch leaves no cache entry behind.
        Raises:
            ExchangeCredentialsNotFoundError: If user has no active account.
            DecryptionError: If stored credentials are unusable.
            UpstreamError: On exchange failure or unexpected payload shape.
        Side Effects:
            Up to three outbound HTTP requests on cache miss.
        """
        rows = self._fetcher.fetch_with_cache(
            user_id=user_id,
            producer=lambda: self._fetch_rows(user_id=user_id),
        )
        return aggregate_account_snapshot(
            balances=rows["balances"],
            positions=rows["positions"],
            income=rows["income"],
            initial_balance=initial_balance,
        )

    def _fetch_rows(self, *, user_id: UserId) -> dict[str, list[Any]]:
        client = open_active_exchange_client(
            repository=self._repository,
            session_factory=self._session_factory,
            user_id=user_id,
        )
        balances = _require_list(payload=client.get_balances(), path="/fapi/v2/balance")
        positions = _require_list(
            payload=client.get_position_risk(),
            path="/fapi/v2/positionRisk",
        )
        income = _require_list(
            payload=client.get_income(
                income_type=REALIZED_PNL_INCOME_TYPE,
                start_time_ms=utc_day_start_ms(now=self._clock.now()),
            ),
            path="/fapi/v1/income",
        )
        log.debug(
            "account rows fetched user_id=%s balances=%s positions=%s income=%s",
            user_id,
            len(balances),
            len(positions),
            len(income),
        )
        return {"balances": balances, "positions": positions, "income": income}


def utc_day_start_ms(*, now: float) -> int:
    """
    Return epoch milliseconds of the UTC midnight that starts the day containing `now`.
    """
    moment = datetime.fromtimestamp(now, tz=timezone.utc)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def _require_list(*, payload: Any, path: str) -> list[Any]:
    if not isinstance(payload, list):
        raise UpstreamError(path=path, body=str(payload)[:500], reason="unexpected_payload")
    return payload
