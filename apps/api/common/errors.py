"""
Shared API error handlers for BrokerError contract and deterministic 422 payloads.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from credbroker.platform.errors import BrokerError

log = logging.getLogger(__name__)

_BROKER_STATUS_BY_CODE: Mapping[str, int] = {
    "validation_error": 422,
    "signature_error": 422,
    "unauthorized": 401,
    "exchange_credentials_not_found": 404,
    "exchange_credentials_rejected": 400,
    "credentials_unusable": 409,
    "upstream_error": 502,
    "configuration_error": 500,
    "unexpected_error": 500,
}
_RECONNECT_CODE = "credentials_unusable"
_RECONNECT_MESSAGE = "Exchange credentials were rejected. Reconnect your exchange account."


def register_api_error_handlers(*, app: FastAPI) -> None:
    """
    Register global API handlers for BrokerError and deterministic FastAPI validation errors.

    Args:
        app: FastAPI application instance.
    Returns:
        None.
    Assumptions:
        Handlers are installed once during application startup.
    Raises:
        ValueError: If `app` dependency is missing.
    Side Effects:
        Mutates FastAPI exception-handler registry.
    """
    if app is None:  # type: ignore[truthy-bool]
        raise ValueError("register_api_error_handlers requires app")

    app.add_exception_handler(BrokerError, broker_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)


def broker_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert BrokerError into deterministic JSON response payload.

    Args:
        _request: Starlette request object (unused).
        error: Raised BrokerError instance.
    Returns:
        JSONResponse: Response with contract payload `{"error": ...}`.
    Assumptions:
        Exchange-side credential rejection renders the same reconnect payload as an
        undecryptable stored blob.
    Raises:
        None.
    Side Effects:
        Logs server-side failures.
    """
    broker_error = cast(BrokerError, error)
    code = broker_error.code
    message = broker_error.message
    details = dict(broker_error.details)

    if code == "upstream_error" and details.get("requires_reconnect") is True:
        code = _RECONNECT_CODE
        message = _RECONNECT_MESSAGE

    status_code = _status_code_for_error(code=code, details=details)
    if status_code >= 500:
        log.warning("request failed code=%s status_code=%s", code, status_code)
    payload = {
        "error": {
            "code": code,
            "message": message,
            "details": _normalize_error_details(code=code, details=details),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)


def request_validation_error_handler(_request: Request, error: Exception) -> JSONResponse:
    """
    Convert FastAPI RequestValidationError to canonical `validation_error` payload.

    Args:
        _request: Starlette request object (unused).
        error: Raised validation exception from FastAPI/Pydantic.
    Returns:
        JSONResponse: HTTP 422 payload with deterministically sorted `details.errors` list.
    Assumptions:
        Validation errors include `loc`, `type`, and `msg` attributes.
    Raises:
        None.
    Side Effects:
        None.
    """
    validation_error = cast(RequestValidationError, error)
    broker_error = BrokerError(
        code="validation_error",
        message="Validation failed",
        details={"errors": _sorted_validation_errors(raw_errors=validation_error.errors())},
    )
    return broker_error_handler(_request, broker_error)


def _status_code_for_error(*, code: str, details: Mapping[str, Any]) -> int:
    if code == "upstream_error" and details.get("reason") == "timeout":
        return 504
    return _BROKER_STATUS_BY_CODE.get(code, 500)


def _normalize_error_details(*, code: str, details: Mapping[str, Any]) -> dict[str, Any]:
    normalized: dict[str, Any] = {}
    for key in sorted(details):
        value = details[key]
        if code == "validation_error" and key == "errors":
            normalized[key] = _sorted_validation_errors(raw_errors=value)
            continue
        normalized[key] = value
    return normalized


def _sorted_validation_errors(*, raw_errors: Any) -> list[dict[str, str]]:
    """
    Convert raw validation errors into deterministic list sorted by path, code, and message.

    Args:
        raw_errors: Raw iterable from FastAPI validation subsystem.
    Returns:
        list[dict[str, str]]: Sorted normalized validation items.
    Assumptions:
        Unknown raw shapes are stringified for deterministic payload stability.
    Raises:
        None.
    Side Effects:
        None.
    """
    if not isinstance(raw_errors, Sequence) or isinstance(raw_errors, (str, bytes, bytearray)):
        return []

    normalized_items: list[dict[str, str]] = []
    for raw_error in raw_errors:
        if not isinstance(raw_error, Mapping):
            normalized_items.append(
                {"path": "unknown", "code": "validation_error", "message": str(raw_error)}
            )
            continue
        if "path" in raw_error and "code" in raw_error and "message" in raw_error:
            normalized_items.append(
                {
                    "path": str(raw_error["path"]),
                    "code": str(raw_error["code"]),
                    "message": str(raw_error["message"]),
                }
            )
            continue
        normalized_items.append(
            {
                "path": _normalize_error_path(loc=raw_error.get("loc")),
                "code": _normalize_error_code(raw_type=raw_error.get("type")),
                "message": str(raw_error.get("msg", "Validation error")),
            }
        )

    return sorted(
        normalized_items,
        key=lambda item: (item["path"], item["code"], item["message"]),
    )


def _normalize_error_path(*, loc: Any) -> str:
    if isinstance(loc, Sequence) and not isinstance(loc, (str, bytes, bytearray)):
        path_parts = [str(part) for part in loc]
        if path_parts:
            return ".".join(path_parts)
    if loc is None:
        return "unknown"
    return str(loc)


def _normalize_error_code(*, raw_type: Any) -> str:
    if raw_type is None:
        return "validation_error"
    normalized = str(raw_type).strip().lower()
    if not normalized:
        return "validation_error"
    if normalized == "missing" or normalized.endswith(".missing"):
        return "required"
    return normalized
