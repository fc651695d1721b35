from __future__ import annotations

from typing import Any, Mapping, Sequence


class BrokerError(Exception):
    """
    BrokerError — canonical error contract shared by cipher, signing, and exchange flows.

    Related:
      - apps/api/common/errors.py
      - src/credbroker/contexts/credentials/application/errors.py
      - src/credbroker/contexts/exchange/application/errors.py
    """

    default_code = "broker_error"

    def __init__(
        self,
        *,
        message: str,
        code: str | None = None,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        """
        Validate canonical error fields and freeze details into deterministic plain payloads.

        Args:
            message: Human-readable non-secret message.
            code: Optional machine-readable code overriding `default_code`.
            details: Optional JSON-compatible diagnostic mapping.
        Returns:
            None.
        Assumptions:
            `code` is a stable token used for HTTP mapping; message never carries secrets.
        Raises:
            ValueError: If `code` or `message` are blank.
            TypeError: If `details` is not mapping-compatible when provided.
        Side Effects:
            None.
        """
        normalized_code = (code if code is not None else self.default_code).strip()
        normalized_message = message.strip()
        if not normalized_code:
            raise ValueError("BrokerError.code must be non-empty")
        if not normalized_message:
            raise ValueError("BrokerError.message must be non-empty")
        if details is not None and not isinstance(details, Mapping):
            raise TypeError("BrokerError.details must be a mapping when provided")

        super().__init__(normalized_message)
        self.code = normalized_code
        self.message = normalized_message
        self.details: dict[str, Any] = (
            _normalize_payload_value(value=dict(details)) if details is not None else {}
        )

    def to_payload(self) -> dict[str, Any]:
        """
        Build deterministic API payload representation.

        Args:
            None.
        Returns:
            dict[str, Any]: `{"error": {"code", "message", "details"}}` payload.
        Assumptions:
            `details` payload is already normalized during initialization.
        Raises:
            None.
        Side Effects:
            None.
        """
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": dict(self.details),
            }
        }


def _normalize_payload_value(*, value: Any) -> Any:
    """
    Normalize nested payload values into deterministic plain-Python structures.

    Args:
        value: Any JSON-compatible value.
    Returns:
        Any: Normalized scalar/list/dict representation.
    Assumptions:
        Non-JSON values are stringified for safe deterministic error payloads.
    Raises:
        None.
    Side Effects:
        None.
    """
    if isinstance(value, Mapping):
        normalized_mapping: dict[str, Any] = {}
        sorted_items = sorted(value.items(), key=lambda item: str(item[0]))
        for raw_key, raw_value in sorted_items:
            normalized_mapping[str(raw_key)] = _normalize_payload_value(value=raw_value)
        return normalized_mapping

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_normalize_payload_value(value=item) for item in value]

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value

    return str(value)
