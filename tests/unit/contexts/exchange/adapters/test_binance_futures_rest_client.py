from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import pytest
import requests

from credbroker.contexts.exchange.adapters.outbound.clients.binance import (
    BinanceFuturesClientConfig,
    BinanceFuturesClientFactory,
)
from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.contexts.exchange.application.services import sign_query

_NOW_MS = 1700000000000


class _FixedClock:
    def now(self) -> float:
        return _NOW_MS / 1000

    def now_ms(self) -> int:
        return _NOW_MS


class _FakeResponse:
    def __init__(self, *, status_code: int, body: Any) -> None:
        self.status_code = status_code
        self._body = body
        self.text = body if isinstance(body, str) else json.dumps(body)

    def json(self) -> Any:
        if isinstance(self._body, str):
            return json.loads(self._body)
        return self._body


class _RecordingSession:
    """
    HTTP session fake recording every call and replaying queued responses or errors.
    """

    def __init__(self, *outcomes: Any) -> None:
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    def request(
        self,
        method: str,
        url: str,
        *,
        data: str | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> _FakeResponse:
        self.calls.append(
            {"method": method, "url": url, "data": data, "headers": headers, "timeout": timeout}
        )
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(session: _RecordingSession, *, timeout_s: float = 8.0) -> Any:
    factory = BinanceFuturesClientFactory(
        config=BinanceFuturesClientConfig(base_url="https://fapi.test/", timeout_s=timeout_s),
        clock=_FixedClock(),
        session=session,
    )
    return factory.build(api_key="api-key", api_secret="mysecret")


def test_get_balances_sends_exact_signed_url_and_api_key_header() -> None:
    """
    Verify the URL on the wire is exactly the signed canonical string.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Query string is embedded by hand and never re-encoded by the HTTP library.
    Raises:
        AssertionError: If URL, headers or timeout differ.
    Side Effects:
        None.
    """
    session = _RecordingSession(_FakeResponse(status_code=200, body=[{"asset": "USDT"}]))

    rows = _client(session).get_balances()

    signed = f"timestamp={_NOW_MS}&recvWindow=5000"
    signature = sign_query(secret="mysecret", canonical_query_string=signed)
    assert rows == [{"asset": "USDT"}]
    assert session.calls == [
        {
            "method": "GET",
            "url": f"https://fapi.test/fapi/v2/balance?{signed}&signature={signature}",
            "data": None,
            "headers": {"X-MBX-APIKEY": "api-key"},
            "timeout": 8.0,
        }
    ]


def test_get_income_orders_window_parameters_before_timestamp() -> None:
    session = _RecordingSession(_FakeResponse(status_code=200, body=[]))

    _client(session).get_income(
        income_type="REALIZED_PNL",
        start_time_ms=1699920000000,
        end_time_ms=1700006399999,
    )

    url = session.calls[0]["url"]
    assert url.startswith(
        "https://fapi.test/fapi/v1/income?incomeType=REALIZED_PNL&startTime=1699920000000"
        f"&endTime=1700006399999&timestamp={_NOW_MS}&recvWindow=5000&signature="
    )


def test_place_market_order_posts_form_body_without_recv_window() -> None:
    """
    Verify order body layout and that it is sent as the form payload.
    """
    session = _RecordingSession(_FakeResponse(status_code=200, body={"orderId": 42}))

    ack = _client(session).place_market_order(
        symbol="BTCUSDT",
        side="sell",
        quantity=Decimal("0.010"),
    )

    call = session.calls[0]
    signed = f"symbol=BTCUSDT&side=SELL&type=MARKET&quantity=0.010&timestamp={_NOW_MS}"
    signature = sign_query(secret="mysecret", canonical_query_string=signed)
    assert ack == {"orderId": 42}
    assert call["method"] == "POST"
    assert call["url"] == "https://fapi.test/fapi/v1/order"
    assert call["data"] == f"{signed}&signature={signature}"
    assert call["headers"]["Content-Type"] == "application/x-www-form-urlencoded"


def test_place_market_order_rejects_invalid_side_and_quantity() -> None:
    client = _client(_RecordingSession())

    with pytest.raises(ValueError, match="BUY or SELL"):
        client.place_market_order(symbol="BTCUSDT", side="HOLD", quantity=Decimal("1"))
    with pytest.raises(ValueError, match="quantity must be > 0"):
        client.place_market_order(symbol="BTCUSDT", side="BUY", quantity=Decimal("0"))


def test_non_2xx_response_raises_upstream_error_with_status_and_body() -> None:
    """
    Verify non-2xx maps to UpstreamError carrying status, body and Binance error code.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Binance error bodies are JSON `{code, msg}`.
    Raises:
        AssertionError: If error fields are missing.
    Side Effects:
        None.
    """
    body = {"code": -2015, "msg": "Invalid API-key, IP, or permissions for action."}
    session = _RecordingSession(_FakeResponse(status_code=401, body=body))

    with pytest.raises(UpstreamError) as error_info:
        _client(session).get_account()

    error = error_info.value
    assert error.status_code == 401
    assert error.upstream_code == -2015
    assert error.credentials_rejected is True
    assert error.details["requires_reconnect"] is True
    assert "Invalid API-key" in error.body
    assert len(session.calls) == 1


def test_server_error_is_not_flagged_as_credentials_rejected() -> None:
    session = _RecordingSession(_FakeResponse(status_code=503, body="Service Unavailable"))

    with pytest.raises(UpstreamError) as error_info:
        _client(session).get_position_risk()

    assert error_info.value.status_code == 503
    assert error_info.value.credentials_rejected is False


def test_timeout_and_network_failures_raise_upstream_error_without_retry() -> None:
    session = _RecordingSession(
        requests.Timeout("read timed out"),
        requests.ConnectionError("connection refused"),
    )
    client = _client(session)

    with pytest.raises(UpstreamError) as timeout_info:
        client.get_balances()
    with pytest.raises(UpstreamError) as network_info:
        client.get_balances()

    assert timeout_info.value.reason == "timeout"
    assert timeout_info.value.status_code is None
    assert network_info.value.reason == "network"
    assert len(session.calls) == 2


def test_invalid_json_body_raises_upstream_error() -> None:
    session = _RecordingSession(_FakeResponse(status_code=200, body="<html>oops</html>"))

    with pytest.raises(UpstreamError) as error_info:
        _client(session).get_balances()

    assert error_info.value.reason == "invalid_json"


def test_client_config_bounds_timeout_by_recv_window_allowance() -> None:
    """
    Verify timeout may not outlive recvWindow plus network allowance.
    """
    BinanceFuturesClientConfig(recv_window_ms=5000, timeout_s=10.0)

    with pytest.raises(ValueError, match="timeout_s must not exceed"):
        BinanceFuturesClientConfig(recv_window_ms=5000, timeout_s=10.5)
    with pytest.raises(ValueError, match="must start with http"):
        BinanceFuturesClientConfig(base_url="fapi.binance.com")
