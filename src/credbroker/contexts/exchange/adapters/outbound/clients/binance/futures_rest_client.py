from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, cast

import requests

from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.contexts.exchange.application.ports import (
    ExchangeClient,
    ExchangeClientFactory,
    ExchangeClock,
    ExchangeHttpSession,
)
from credbroker.contexts.exchange.application.services.request_signing import (
    DEFAULT_RECV_WINDOW_MS,
    RequestSigner,
)
from credbroker.contexts.exchange.domain.entities import SignedRequest

log = logging.getLogger(__name__)

BINANCE_FUTURES_MAINNET = "https://fapi.binance.com"
BALANCE_PATH = "/fapi/v2/balance"
POSITION_RISK_PATH = "/fapi/v2/positionRisk"
INCOME_PATH = "/fapi/v1/income"
ACCOUNT_PATH = "/fapi/v2/account"
ORDER_PATH = "/fapi/v1/order"
NETWORK_ALLOWANCE_S = 5.0
_ORDER_SIDES = frozenset({"BUY", "SELL"})


@dataclass(frozen=True, slots=True)
class BinanceFuturesClientConfig:
    """
    BinanceFuturesClientConfig — runtime settings for Binance USDⓈ-M futures REST adapter.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/config/exchange_runtime_config.py
      - configs/dev/exchange_client.yaml
    """

    base_url: str = BINANCE_FUTURES_MAINNET
    recv_window_ms: int = DEFAULT_RECV_WINDOW_MS
    timeout_s: float = 8.0

    def __post_init__(self) -> None:
        """
        Validate client config invariants.

        Args:
            None.
        Returns:
            None.
        Assumptions:
            Request timeout must not outlive the `recvWindow` tolerance plus network allowance.
        Raises:
            ValueError: If one of config values is invalid.
        Side Effects:
            None.
        """
        normalized_base_url = self.base_url.strip()
        if not normalized_base_url.startswith(("https://", "http://")):
            raise ValueError(
                "BinanceFuturesClientConfig.base_url must start with http:// or https://"
            )
        if self.recv_window_ms <= 0 or self.recv_window_ms > 60_000:
            raise ValueError("BinanceFuturesClientConfig.recv_window_ms must be in (0, 60000]")
        if self.timeout_s <= 0:
            raise ValueError("BinanceFuturesClientConfig.timeout_s must be > 0")
        if self.timeout_s > self.recv_window_ms / 1000 + NETWORK_ALLOWANCE_S:
            raise ValueError(
                "BinanceFuturesClientConfig.timeout_s must not exceed "
                "recv_window_ms/1000 + network allowance"
            )
        object.__setattr__(self, "base_url", normalized_base_url.rstrip("/"))


class BinanceFuturesRestClient(ExchangeClient):
    """
    BinanceFuturesRestClient — signed Binance futures REST calls for one decrypted key pair.

    The signed string is sent verbatim: GET query strings are embedded into the URL by
    hand and POST bodies are passed as pre-encoded form strings, so `requests` never
    re-encodes or reorders parameters after signing.

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_client.py
      - src/credbroker/contexts/exchange/application/services/request_signing.py
      - tests/unit/contexts/exchange/adapters/test_binance_futures_rest_client.py
    """

    def __init__(
        self,
        *,
        signer: RequestSigner,
        timeout_s: float,
        session: ExchangeHttpSession,
    ) -> None:
        if signer is None:  # type: ignore[truthy-bool]
            raise ValueError("BinanceFuturesRestClient requires signer")
        if session is None:  # type: ignore[truthy-bool]
            raise ValueError("BinanceFuturesRestClient requires session")
        if timeout_s <= 0:
            raise ValueError("BinanceFuturesRestClient.timeout_s must be > 0")
        self._signer = signer
        self._timeout_s = timeout_s
        self._session = session

    def get_balances(self) -> Any:
        return self._send(request=self._signer.build(method="GET", path=BALANCE_PATH))

    def get_position_risk(self) -> Any:
        return self._send(request=self._signer.build(method="GET", path=POSITION_RISK_PATH))

    def get_income(
        self,
        *,
        income_type: str,
        start_time_ms: int,
        end_time_ms: int | None = None,
    ) -> Any:
        """
        Fetch income history rows.

        Args:
            income_type: Binance income type literal, e.g. `REALIZED_PNL`.
            start_time_ms: Inclusive window start in epoch milliseconds.
            end_time_ms: Optional inclusive window end in epoch milliseconds.
        Returns:
            Any: Decoded JSON list of income rows.
        Assumptions:
            `incomeType`, `startTime`, `endTime` precede `timestamp`/`recvWindow`/`signature`.
        Raises:
            UpstreamError: On non-2xx or transport failure.
            SignatureError: On invalid parameters.
        Side Effects:
            Performs one outbound HTTP request.
        """
        params: dict[str, Any] = {
            "incomeType": income_type,
            "startTime": start_time_ms,
        }
        if end_time_ms is not None:
            params["endTime"] = end_time_ms
        return self._send(
            request=self._signer.build(method="GET", path=INCOME_PATH, params=params)
        )

    def get_account(self) -> Any:
        return self._send(request=self._signer.build(method="GET", path=ACCOUNT_PATH))

    def place_market_order(self, *, symbol: str, side: str, quantity: Decimal) -> Any:
        """
        Place one MARKET order.

        Args:
            symbol: Futures symbol, e.g. `BTCUSDT`.
            side: `BUY` or `SELL`.
            quantity: Positive order quantity.
        Returns:
            Any: Decoded JSON order acknowledgement.
        Assumptions:
            Body order is `symbol, side, type, quantity, timestamp, signature`.
        Raises:
            ValueError: If side or quantity is invalid.
            UpstreamError: On non-2xx or transport failure.
        Side Effects:
            Performs one outbound HTTP request that changes exchange state.
        """
        normalized_side = side.strip().upper()
        if normalized_side not in _ORDER_SIDES:
            raise ValueError(f"Order side must be BUY or SELL, got {side!r}")
        if quantity <= 0:
            raise ValueError("Order quantity must be > 0")
        request = self._signer.build(
            method="POST",
            path=ORDER_PATH,
            params={
                "symbol": symbol,
                "side": normalized_side,
                "type": "MARKET",
                "quantity": quantity,
            },
            include_recv_window=False,
        )
        return self._send(request=request)

    def _send(self, *, request: SignedRequest) -> Any:
        """
        Dispatch signed request and decode JSON response.

        Args:
            request: Signed request descriptor.
        Returns:
            Any: Decoded JSON body.
        Assumptions:
            No retries here: a retry must be rebuilt with a fresh timestamp by the caller.
        Raises:
            UpstreamError: On non-2xx, timeout, transport failure, or invalid JSON.
        Side Effects:
            Performs one outbound HTTP request.
        """
        try:
            response = self._session.request(
                request.method,
                request.url,
                data=request.body,
                headers=dict(request.headers),
                timeout=self._timeout_s,
            )
        except requests.Timeout as error:
            log.warning(
                "exchange request timed out method=%s path=%s",
                request.method,
                request.path,
            )
            raise UpstreamError(path=request.path, reason="timeout") from error
        except requests.RequestException as error:
            log.warning(
                "exchange request failed method=%s path=%s error=%s",
                request.method,
                request.path,
                type(error).__name__,
            )
            raise UpstreamError(path=request.path, reason="network") from error

        if not 200 <= response.status_code < 300:
            body = _response_text(response=response)
            log.warning(
                "exchange request rejected method=%s path=%s status_code=%s body=%s",
                request.method,
                request.path,
                response.status_code,
                body[:200],
            )
            raise UpstreamError(path=request.path, status_code=response.status_code, body=body)

        try:
            return response.json()
        except ValueError as error:
            raise UpstreamError(
                path=request.path,
                status_code=response.status_code,
                body=_response_text(response=response),
                reason="invalid_json",
            ) from error


class BinanceFuturesClientFactory(ExchangeClientFactory):
    """
    BinanceFuturesClientFactory — builds Binance futures clients sharing one HTTP session.

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_client.py
      - apps/api/wiring/modules/exchange.py
    """

    def __init__(
        self,
        *,
        config: BinanceFuturesClientConfig,
        clock: ExchangeClock,
        session: ExchangeHttpSession | None = None,
    ) -> None:
        """
        Initialize factory dependencies.

        Args:
            config: Validated client config.
            clock: Time source for request timestamps.
            session: Optional injected HTTP session for tests.
        Returns:
            None.
        Assumptions:
            `requests.Session` is safe to share for sequential request/response use.
        Raises:
            ValueError: If required dependencies are missing.
        Side Effects:
            Creates `requests.Session` when no custom session is injected.
        """
        if config is None:  # type: ignore[truthy-bool]
            raise ValueError("BinanceFuturesClientFactory requires config")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("BinanceFuturesClientFactory requires clock")
        self._config = config
        self._clock = clock
        self._session = (
            session
            if session is not None
            else cast(ExchangeHttpSession, requests.Session())
        )

    def build(
        self,
        *,
        api_key: str,
        api_secret: str,
        recv_window_ms: int | None = None,
    ) -> BinanceFuturesRestClient:
        signer = RequestSigner(
            api_key=api_key,
            api_secret=api_secret,
            base_url=self._config.base_url,
            clock=self._clock,
            recv_window_ms=(
                recv_window_ms if recv_window_ms is not None else self._config.recv_window_ms
            ),
        )
        return BinanceFuturesRestClient(
            signer=signer,
            timeout_s=self._config.timeout_s,
            session=self._session,
        )


def _response_text(*, response: Any) -> str:
    try:
        return str(response.text)
    except Exception:  # noqa: BLE001
        return ""
