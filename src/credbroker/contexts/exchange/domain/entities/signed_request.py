from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

API_KEY_HEADER = "X-MBX-APIKEY"


@dataclass(frozen=True, slots=True)
class SignedRequest:
    """
    SignedRequest — one fully formed authenticated call ready for dispatch.

    `query_string` is the exact signed string including the trailing `signature`
    parameter. GET/DELETE send it as URL query, POST sends it as form body.

    Related:
      - src/credbroker/contexts/exchange/application/services/request_signing.py
      - src/credbroker/contexts/exchange/adapters/outbound/clients/binance/futures_rest_client.py
    """

    method: str
    base_url: str
    path: str
    query_string: str
    body: str | None
    headers: Mapping[str, str]

    @property
    def url(self) -> str:
        if self.body is not None:
            return f"{self.base_url}{self.path}"
        return f"{self.base_url}{self.path}?{self.query_string}"

    def __repr__(self) -> str:
        return (
            f"SignedRequest(method={self.method!r}, base_url={self.base_url!r}, "
            f"path={self.path!r}, query_string={self.query_string!r}, "
            f"has_body={self.body is not None})"
        )
