from __future__ import annotations

import hashlib
import hmac
import math
from decimal import Decimal
from typing import Any, Mapping
from urllib.parse import quote

from credbroker.contexts.exchange.application.errors import SignatureError
from credbroker.contexts.exchange.application.ports.clock import ExchangeClock
from credbroker.contexts.exchange.domain.entities import API_KEY_HEADER, SignedRequest

DEFAULT_RECV_WINDOW_MS = 5000
_RESERVED_KEYS = frozenset({"signature", "timestamp", "recvWindow"})
_BODY_METHODS = frozenset({"POST", "PUT"})
_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def sign_query(*, secret: str, canonical_query_string: str) -> str:
    """
    Compute HMAC-SHA256 signature over canonical query string.

    Args:
        secret: Plain API secret used as HMAC key.
        canonical_query_string: Exact string that will be sent over the wire.
    Returns:
        str: 64-character lowercase hex digest.
    Assumptions:
        Pure function: identical inputs always yield identical output.
    Raises:
        SignatureError: If inputs are not strings.
    Side Effects:
        None.
    """
    if not isinstance(secret, str) or not isinstance(canonical_query_string, str):
        raise SignatureError(message="sign_query requires str secret and query string")
    return hmac.new(
        secret.encode("utf-8"),
        canonical_query_string.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def canonical_query_string(*, params: Mapping[str, Any]) -> str:
    """
    Serialize parameters into the canonical string used for both signing and sending.

    Args:
        params: Parameters in the order they must appear on the wire.
    Returns:
        str: `key=value` pairs joined by `&` in insertion order, percent-encoded.
    Assumptions:
        Insertion order is the canonical order: `{a, b}` and `{b, a}` produce different
        strings with independently valid signatures.
    Raises:
        SignatureError: If a key is blank or a value is not a supported scalar.
    Side Effects:
        None.
    """
    pairs: list[str] = []
    for key, value in params.items():
        if not isinstance(key, str) or not key.strip():
            raise SignatureError(
                message="Request parameter names must be non-empty strings.",
                details={"key": str(key)},
            )
        rendered = _render_value(key=key, value=value)
        pairs.append(f"{quote(key, safe='')}={quote(rendered, safe='')}")
    return "&".join(pairs)


def build_authenticated_request(
    *,
    api_key: str,
    api_secret: str,
    base_url: str,
    path: str,
    params: Mapping[str, Any],
    timestamp_ms: int,
    recv_window_ms: int | None = DEFAULT_RECV_WINDOW_MS,
    method: str = "GET",
) -> SignedRequest:
    """
    Build fully formed signed request descriptor without performing network I/O.

    Args:
        api_key: Plain API key sent as `X-MBX-APIKEY` header.
        api_secret: Plain API secret used for signing.
        base_url: Exchange REST base URL.
        path: API path starting with `/`.
        params: Caller parameters in wire order.
        timestamp_ms: Fresh epoch milliseconds for this request.
        recv_window_ms: `recvWindow` tolerance, or `None` to omit the parameter.
        method: HTTP method.
    Returns:
        SignedRequest: Descriptor whose `query_string` ends with `&signature=<hex>`.
    Assumptions:
        `timestamp` then `recvWindow` are appended after caller parameters.
    Raises:
        SignatureError: If credentials are blank, caller uses reserved parameter names,
            or a parameter value cannot be canonicalized.
    Side Effects:
        None.
    """
    if not isinstance(api_key, str) or not api_key.strip():
        raise SignatureError(message="Exchange API key must be non-empty.")
    if not isinstance(api_secret, str) or not api_secret:
        raise SignatureError(message="Exchange API secret must be non-empty.")
    if not path.startswith("/"):
        raise SignatureError(message="Request path must start with '/'.", details={"path": path})
    reserved = sorted(_RESERVED_KEYS.intersection(params.keys()))
    if reserved:
        raise SignatureError(
            message="Request parameters must not include reserved names.",
            details={"keys": reserved},
        )
    if isinstance(timestamp_ms, bool) or not isinstance(timestamp_ms, int) or timestamp_ms <= 0:
        raise SignatureError(message="Request timestamp must be positive epoch milliseconds.")

    signed_params: dict[str, Any] = dict(params)
    signed_params["timestamp"] = timestamp_ms
    if recv_window_ms is not None:
        signed_params["recvWindow"] = recv_window_ms

    canonical = canonical_query_string(params=signed_params)
    signature = sign_query(secret=api_secret, canonical_query_string=canonical)
    query_string = f"{canonical}&signature={signature}"

    normalized_method = method.strip().upper()
    headers = {API_KEY_HEADER: api_key.strip()}
    body: str | None = None
    if normalized_method in _BODY_METHODS:
        body = query_string
        headers["Content-Type"] = _FORM_CONTENT_TYPE

    return SignedRequest(
        method=normalized_method,
        base_url=base_url.rstrip("/"),
        path=path,
        query_string=query_string,
        body=body,
        headers=headers,
    )


class RequestSigner:
    """
    RequestSigner — binds one decrypted key pair and draws a fresh timestamp per request.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
      - src/credbroker/contexts/exchange/application/ports/clock.py
    """

    def __init__(
        self,
        *,
        api_key: str,
        api_secret: str,
        base_url: str,
        clock: ExchangeClock,
        recv_window_ms: int = DEFAULT_RECV_WINDOW_MS,
    ) -> None:
        """
        Initialize signer for one key pair.

        Args:
            api_key: Plain API key.
            api_secret: Plain API secret.
            base_url: Exchange REST base URL.
            clock: Time source for `timestamp`.
            recv_window_ms: Default `recvWindow` tolerance.
        Returns:
            None.
        Assumptions:
            Secrets are kept in memory only for signer lifetime.
        Raises:
            SignatureError: If key or secret is blank.
            ValueError: If clock is missing or recv window is out of range.
        Side Effects:
            None.
        """
        if not isinstance(api_key, str) or not api_key.strip():
            raise SignatureError(message="Exchange API key must be non-empty.")
        if not isinstance(api_secret, str) or not api_secret:
            raise SignatureError(message="Exchange API secret must be non-empty.")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("RequestSigner requires clock")
        if recv_window_ms <= 0 or recv_window_ms > 60_000:
            raise ValueError("RequestSigner.recv_window_ms must be in (0, 60000]")
        self._api_key = api_key
        self._api_secret = api_secret
        self._base_url = base_url
        self._clock = clock
        self._recv_window_ms = recv_window_ms

    @property
    def recv_window_ms(self) -> int:
        return self._recv_window_ms

    def build(
        self,
        *,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        include_recv_window: bool = True,
    ) -> SignedRequest:
        return build_authenticated_request(
            api_key=self._api_key,
            api_secret=self._api_secret,
            base_url=self._base_url,
            path=path,
            params=params if params is not None else {},
            timestamp_ms=self._clock.now_ms(),
            recv_window_ms=self._recv_window_ms if include_recv_window else None,
            method=method,
        )

    def __repr__(self) -> str:
        return f"RequestSigner(base_url={self._base_url!r}, api_key=<redacted>)"


def _render_value(*, key: str, value: Any) -> str:
    """
    Render one parameter value into its canonical text form.

    Args:
        key: Parameter name for error details.
        value: Raw parameter value.
    Returns:
        str: Canonical text without scientific notation.
    Assumptions:
        Only scalar values are serializable into query parameters.
    Raises:
        SignatureError: If value is `None`, non-finite, or of an unsupported type.
    Side Effects:
        None.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return value
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise SignatureError(
                message="Request parameter value must be finite.",
                details={"key": key},
            )
        return format(value, "f")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SignatureError(
                message="Request parameter value must be finite.",
                details={"key": key},
            )
        return format(Decimal(repr(value)), "f")
    raise SignatureError(
        message="Request parameter value is not serializable.",
        details={"key": key, "type": type(value).__name__},
    )
