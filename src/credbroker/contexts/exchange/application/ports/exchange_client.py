from __future__ import annotations

from decimal import Decimal
from typing import Any, Protocol


class ExchangeClient(Protocol):
    """
    ExchangeClient — authenticated futures exchange API bound to one key pair.

    Every method issues one signed request with a freshly generated timestamp and
    returns the decoded JSON body untouched.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
      - src/credbroker/contexts/exchange/application/use_cases/load_account_snapshot.py
      - src/credbroker/contexts/exchange/application/use_cases/close_all_positions.py
    """

    def get_balances(self) -> Any:
        ...

    def get_position_risk(self) -> Any:
        ...

    def get_income(
        self,
        *,
        income_type: str,
        start_time_ms: int,
        end_time_ms: int | None = None,
    ) -> Any:
        ...

    def get_account(self) -> Any:
        ...

    def place_market_order(self, *, symbol: str, side: str, quantity: Decimal) -> Any:
        ...


class ExchangeClientFactory(Protocol):
    """
    ExchangeClientFactory — builds `ExchangeClient` instances for decrypted key pairs.
    """

    def build(
        self,
        *,
        api_key: str,
        api_secret: str,
        recv_window_ms: int | None = None,
    ) -> ExchangeClient:
        """
        Build client bound to one API key pair.

        Args:
            api_key: Plain API key.
            api_secret: Plain API secret.
            recv_window_ms: Optional override of default `recvWindow` tolerance.
        Returns:
            ExchangeClient: Bound client.
        Assumptions:
            Plain secrets stay in memory for the client lifetime only.
        Raises:
            SignatureError: If key or secret is blank.
        Side Effects:
            None.
        """
        ...
