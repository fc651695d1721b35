from __future__ import annotations

import hashlib
import hmac
from decimal import Decimal

import pytest

from credbroker.contexts.exchange.application.errors import SignatureError
from credbroker.contexts.exchange.application.services import (
    RequestSigner,
    build_authenticated_request,
    canonical_query_string,
    sign_query,
)

_BASE_URL = "https://fapi.binance.com"


class _FixedClock:
    def __init__(self, now_ms: int) -> None:
        self._now_ms = now_ms

    def now(self) -> float:
        return self._now_ms / 1000

    def now_ms(self) -> int:
        value = self._now_ms
        self._now_ms += 1
        return value


def test_sign_query_matches_reference_hmac_sha256_hex() -> None:
    """
    Verify signature equals HMAC-SHA256 hex digest of the exact query string.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Secret and query are UTF-8 encoded before hashing.
    Raises:
        AssertionError: If digest or its format differs.
    Side Effects:
        None.
    """
    query = "symbol=BTCUSDT&timestamp=1700000000000&recvWindow=5000"
    expected = hmac.new(b"mysecret", query.encode("utf-8"), hashlib.sha256).hexdigest()

    signature = sign_query(secret="mysecret", canonical_query_string=query)

    assert signature == expected
    assert len(signature) == 64
    assert signature == signature.lower()


def test_sign_query_is_deterministic_and_sensitive_to_every_character() -> None:
    query = "symbol=BTCUSDT&timestamp=1700000000000&recvWindow=5000"

    first = sign_query(secret="mysecret", canonical_query_string=query)
    second = sign_query(secret="mysecret", canonical_query_string=query)
    changed = sign_query(secret="mysecret", canonical_query_string=query.replace("5000", "5001"))

    assert first == second
    assert changed != first


def test_canonical_query_string_preserves_insertion_order() -> None:
    """
    Verify `{a, b}` and `{b, a}` produce different strings and independent valid signatures.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Insertion order is the canonical order for both signing and sending.
    Raises:
        AssertionError: If order is normalized away.
    Side Effects:
        None.
    """
    ab = canonical_query_string(params={"a": 1, "b": 2})
    ba = canonical_query_string(params={"b": 2, "a": 1})

    assert ab == "a=1&b=2"
    assert ba == "b=2&a=1"
    assert sign_query(secret="s", canonical_query_string=ab) != sign_query(
        secret="s",
        canonical_query_string=ba,
    )


def test_canonical_query_string_renders_scalars_without_scientific_notation() -> None:
    rendered = canonical_query_string(
        params={
            "quantity": Decimal("0.00000100"),
            "price": 0.1,
            "reduceOnly": True,
            "symbol": "BTCUSDT",
            "note": "a b&c",
        }
    )

    assert rendered == (
        "quantity=0.00000100&price=0.1&reduceOnly=true&symbol=BTCUSDT&note=a%20b%26c"
    )


@pytest.mark.parametrize("value", [None, [1, 2], {"k": "v"}, float("nan"), Decimal("Infinity")])
def test_canonical_query_string_rejects_unsupported_values(value: object) -> None:
    with pytest.raises(SignatureError):
        canonical_query_string(params={"key": value})


def test_build_authenticated_request_appends_timestamp_recv_window_and_signature() -> None:
    """
    Verify GET descriptor layout: caller params, timestamp, recvWindow, signature.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Signature covers every parameter that precedes it on the wire.
    Raises:
        AssertionError: If URL, headers or signature are wrong.
    Side Effects:
        None.
    """
    request = build_authenticated_request(
        api_key="api-key",
        api_secret="mysecret",
        base_url=_BASE_URL,
        path="/fapi/v2/positionRisk",
        params={"symbol": "BTCUSDT"},
        timestamp_ms=1700000000000,
    )

    signed_part = "symbol=BTCUSDT&timestamp=1700000000000&recvWindow=5000"
    signature = sign_query(secret="mysecret", canonical_query_string=signed_part)
    assert request.query_string == f"{signed_part}&signature={signature}"
    assert request.url == f"{_BASE_URL}/fapi/v2/positionRisk?{signed_part}&signature={signature}"
    assert request.body is None
    assert request.headers == {"X-MBX-APIKEY": "api-key"}
    assert "api-key" not in repr(request)


def test_build_authenticated_request_puts_post_parameters_in_form_body() -> None:
    request = build_authenticated_request(
        api_key="api-key",
        api_secret="mysecret",
        base_url=_BASE_URL,
        path="/fapi/v1/order",
        params={"symbol": "BTCUSDT", "side": "SELL", "type": "MARKET", "quantity": "0.5"},
        timestamp_ms=1700000000000,
        recv_window_ms=None,
        method="post",
    )

    assert request.method == "POST"
    assert request.url == f"{_BASE_URL}/fapi/v1/order"
    assert request.body is not None
    assert request.body.startswith(
        "symbol=BTCUSDT&side=SELL&type=MARKET&quantity=0.5&timestamp=1700000000000&signature="
    )
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"


@pytest.mark.parametrize("reserved", ["signature", "timestamp", "recvWindow"])
def test_build_authenticated_request_rejects_reserved_parameter_names(reserved: str) -> None:
    with pytest.raises(SignatureError, match="reserved names"):
        build_authenticated_request(
            api_key="api-key",
            api_secret="mysecret",
            base_url=_BASE_URL,
            path="/fapi/v2/balance",
            params={reserved: "1"},
            timestamp_ms=1700000000000,
        )


def test_build_authenticated_request_rejects_blank_credentials() -> None:
    with pytest.raises(SignatureError, match="API key must be non-empty"):
        build_authenticated_request(
            api_key=" ",
            api_secret="mysecret",
            base_url=_BASE_URL,
            path="/fapi/v2/balance",
            params={},
            timestamp_ms=1700000000000,
        )
    with pytest.raises(SignatureError, match="API secret must be non-empty"):
        build_authenticated_request(
            api_key="api-key",
            api_secret="",
            base_url=_BASE_URL,
            path="/fapi/v2/balance",
            params={},
            timestamp_ms=1700000000000,
        )


def test_request_signer_draws_fresh_timestamp_per_request() -> None:
    """
    Verify two consecutive builds carry distinct timestamps and signatures.
    """
    signer = RequestSigner(
        api_key="api-key",
        api_secret="mysecret",
        base_url=_BASE_URL,
        clock=_FixedClock(now_ms=1700000000000),
    )

    first = signer.build(method="GET", path="/fapi/v2/balance")
    second = signer.build(method="GET", path="/fapi/v2/balance")

    assert first.query_string.startswith("timestamp=1700000000000&recvWindow=5000&signature=")
    assert second.query_string.startswith("timestamp=1700000000001&recvWindow=5000&signature=")
    assert "mysecret" not in repr(signer)


def test_request_signer_rejects_out_of_range_recv_window() -> None:
    with pytest.raises(ValueError, match="recv_window_ms must be in"):
        RequestSigner(
            api_key="api-key",
            api_secret="mysecret",
            base_url=_BASE_URL,
            clock=_FixedClock(now_ms=1),
            recv_window_ms=60_001,
        )
