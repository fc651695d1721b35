from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel, ConfigDict

from apps.api.common import register_api_error_handlers
from credbroker.contexts.credentials import DecryptionError
from credbroker.contexts.exchange.application.errors import UpstreamError
from credbroker.platform.errors import BrokerError


class _ValidationPayload(BaseModel):
    """
    Validation payload model with deliberately non-lexicographic field order for sorting test.
    """

    model_config = ConfigDict(extra="forbid")

    b: int
    a: int


def _app_raising(error: Exception) -> TestClient:
    app = FastAPI()
    register_api_error_handlers(app=app)

    @app.get("/boom")
    def boom() -> None:
        raise error

    return TestClient(app)


def test_broker_error_handler_maps_error_to_http_status_and_payload() -> None:
    """
    Verify BrokerError is converted into deterministic API payload and status mapping.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        `exchange_credentials_not_found` code must be mapped to HTTP 404.
    Raises:
        AssertionError: If payload shape or HTTP status mapping is broken.
    Side Effects:
        None.
    """
    client = _app_raising(
        BrokerError(
            code="exchange_credentials_not_found",
            message="No active exchange account found.",
            details={"z": 1, "a": 2},
        )
    )

    response = client.get("/boom")

    assert response.status_code == 404
    assert response.json() == {
        "error": {
            "code": "exchange_credentials_not_found",
            "message": "No active exchange account found.",
            "details": {"a": 2, "z": 1},
        }
    }
    assert list(response.json()["error"]["details"]) == ["a", "z"]


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (BrokerError(code="unauthorized", message="Missing caller identity."), 401, "unauthorized"),
        (DecryptionError(reason="authentication_failed"), 409, "credentials_unusable"),
        (
            UpstreamError(path="/fapi/v2/balance", status_code=503, body="down"),
            502,
            "upstream_error",
        ),
        (UpstreamError(path="/fapi/v2/balance", reason="timeout"), 504, "upstream_error"),
        (BrokerError(code="something_new", message="Unmapped."), 500, "something_new"),
    ],
)
def test_broker_error_handler_status_mapping(
    error: BrokerError,
    status_code: int,
    code: str,
) -> None:
    response = _app_raising(error).get("/boom")

    assert response.status_code == status_code
    assert response.json()["error"]["code"] == code


def test_broker_error_handler_renders_exchange_key_rejection_as_reconnect() -> None:
    """
    Verify exchange-side key rejection renders the same reconnect contract as a bad blob.
    """
    error = UpstreamError(
        path="/fapi/v2/balance",
        status_code=401,
        body='{"code":-2015,"msg":"Invalid API-key, IP, or permissions for action."}',
    )

    response = _app_raising(error).get("/boom")

    payload = response.json()["error"]
    assert response.status_code == 409
    assert payload["code"] == "credentials_unusable"
    assert payload["message"] == (
        "Exchange credentials were rejected. Reconnect your exchange account."
    )
    assert payload["details"]["requires_reconnect"] is True
    assert payload["details"]["upstream_code"] == -2015


def test_request_validation_error_handler_returns_sorted_validation_errors() -> None:
    """
    Verify validation handler returns deterministic `validation_error` payload with sorted errors.

    Args:
        None.
    Returns:
        None.
    Assumptions:
        Errors are sorted lexicographically by path, then code, then message.
    Raises:
        AssertionError: If response payload differs from deterministic contract.
    Side Effects:
        None.
    """
    app = FastAPI()
    register_api_error_handlers(app=app)

    @app.post("/validate")
    def validate(payload: _ValidationPayload) -> dict[str, int]:
        return {"a": payload.a, "b": payload.b}

    client = TestClient(app)
    response = client.post("/validate", json={"z": 1})

    assert response.status_code == 422
    assert response.json() == {
        "error": {
            "code": "validation_error",
            "message": "Validation failed",
            "details": {
                "errors": [
                    {
                        "path": "body.a",
                        "code": "required",
                        "message": "Field required",
                    },
                    {
                        "path": "body.b",
                        "code": "required",
                        "message": "Field required",
                    },
                    {
                        "path": "body.z",
                        "code": "extra_forbidden",
                        "message": "Extra inputs are not permitted",
                    },
                ]
            },
        }
    }
