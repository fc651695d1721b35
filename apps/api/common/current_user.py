"""
Caller identity dependency for exchange routes.

Authentication happens upstream; this service trusts the `X-User-Id` header set by the
gateway and only validates its shape.
"""

from __future__ import annotations

from fastapi import Header

from credbroker.platform.errors import BrokerError
from credbroker.shared_kernel.primitives import UserId

USER_ID_HEADER = "X-User-Id"


def require_user_id(
    x_user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
) -> UserId:
    """
    Resolve authenticated user id from gateway header.

    Args:
        x_user_id: Raw header value.
    Returns:
        UserId: Parsed user identifier.
    Assumptions:
        Header carries a canonical UUID string.
    Raises:
        BrokerError: `unauthorized` when header is missing or malformed.
    Side Effects:
        None.
    """
    if x_user_id is None or not x_user_id.strip():
        raise BrokerError(code="unauthorized", message="Missing caller identity.")
    try:
        return UserId.from_string(x_user_id.strip())
    except ValueError as error:
        raise BrokerError(code="unauthorized", message="Invalid caller identity.") from error
