from __future__ import annotations

import json
from typing import Any

from credbroker.platform.errors import BrokerError

_CREDENTIALS_REJECTED_STATUSES = frozenset({401, 403})
# Binance: -2014 bad API key format, -2015 invalid key/IP/permissions, -1022 bad signature.
_CREDENTIALS_REJECTED_CODES = frozenset({-2014, -2015, -1022})
_BODY_EXCERPT_LIMIT = 500


class UpstreamError(BrokerError):
    """
    UpstreamError — non-2xx response or transport failure talking to the exchange API.

    Carries upstream status and body excerpt for diagnostics. Callers own retry policy:
    a retry must rebuild the signed request with a fresh timestamp.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
      - apps/api/common/errors.py
    """

    default_code = "upstream_error"

    def __init__(
        self,
        *,
        path: str,
        status_code: int | None = None,
        body: str = "",
        reason: str = "http_status",
    ) -> None:
        """
        Initialize upstream failure with optional HTTP status and body.

        Args:
            path: Upstream API path that failed.
            status_code: HTTP status, or `None` for transport failures.
            body: Raw upstream response body.
            reason: `http_status`, `timeout`, `network`, or `invalid_json`.
        Returns:
            None.
        Assumptions:
            Body never contains request secrets; only the response is captured.
        Raises:
            None.
        Side Effects:
            None.
        """
        self.path = path
        self.status_code = status_code
        self.body = body
        self.reason = reason
        self.upstream_code = _parse_upstream_code(body=body)
        details: dict[str, Any] = {
            "path": path,
            "reason": reason,
            "status_code": status_code,
            "upstream_code": self.upstream_code,
            "body": body[:_BODY_EXCERPT_LIMIT],
            "requires_reconnect": self.credentials_rejected,
        }
        if status_code is not None:
            message = f"Exchange API returned HTTP {status_code} for {path}."
        else:
            message = f"Exchange API request failed ({reason}) for {path}."
        super().__init__(message=message, details=details)

    @property
    def credentials_rejected(self) -> bool:
        """
        Report whether the upstream rejected the credentials themselves.

        Args:
            None.
        Returns:
            bool: `True` for HTTP 401/403 or Binance key/signature error codes.
        Assumptions:
            Same user-facing remedy as `DecryptionError`: reconnect the exchange account.
        Raises:
            None.
        Side Effects:
            None.
        """
        if self.status_code in _CREDENTIALS_REJECTED_STATUSES:
            return True
        return self.upstream_code in _CREDENTIALS_REJECTED_CODES


class SignatureError(BrokerError):
    """
    SignatureError — request parameters cannot be canonicalized for signing.
    """

    default_code = "signature_error"


class ExchangeCredentialsNotFoundError(BrokerError):
    """
    ExchangeCredentialsNotFoundError — user has no active exchange credentials record.
    """

    default_code = "exchange_credentials_not_found"

    def __init__(self) -> None:
        super().__init__(message="No active exchange account found.")


def _parse_upstream_code(*, body: str) -> int | None:
    """
    Extract Binance numeric error code from JSON error body.

    Args:
        body: Raw response body.
    Returns:
        int | None: `code` field value when body is `{"code": <int>, ...}`.
    Assumptions:
        Non-JSON bodies carry no code.
    Raises:
        None.
    Side Effects:
        None.
    """
    try:
        payload = json.loads(body)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    code = payload.get("code")
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


class ExchangeCredentialsValidationError(BrokerError):
    """
    ExchangeCredentialsValidationError — submitted exchange account payload is incomplete.
    """

    default_code = "validation_error"


class ExchangeCredentialsRejectedError(BrokerError):
    """
    ExchangeCredentialsRejectedError — exchange refused the submitted key pair on verification.
    """

    default_code = "exchange_credentials_rejected"

    def __init__(self, *, result_code: str, message: str) -> None:
        super().__init__(
            message=message,
            details={"result_code": result_code, "requires_reconnect": True},
        )
        self.result_code = result_code
