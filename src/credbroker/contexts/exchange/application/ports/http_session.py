from __future__ import annotations

from typing import Any, Mapping, Protocol


class ExchangeHttpResponse(Protocol):
    """
    ExchangeHttpResponse — minimal HTTP response contract used by exchange adapters.
    """

    status_code: int

    def json(self) -> Any:
        ...

    @property
    def text(self) -> str:
        ...


class ExchangeHttpSession(Protocol):
    """
    ExchangeHttpSession — minimal `requests.Session` contract for exchange client testability.

    Related:
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
      - tests/unit/contexts/exchange/adapters/test_binance_futures_rest_client.py
    """

    def request(
        self,
        method: str,
        url: str,
        *,
        data: str | None,
        headers: Mapping[str, str],
        timeout: float,
    ) -> ExchangeHttpResponse:
        """
        Execute one HTTP request.

        Args:
            method: HTTP method.
            url: Full URL including the exact signed query string for GET requests.
            data: Exact signed form body for POST requests.
            headers: Request headers.
            timeout: Request timeout seconds.
        Returns:
            ExchangeHttpResponse: HTTP response object.
        Assumptions:
            Implementation does not re-encode or reorder URL query parameters.
        Raises:
            Exception: Transport-level failures.
        Side Effects:
            Performs outbound HTTP request.
        """
        ...
