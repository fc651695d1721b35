from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from credbroker.contexts.credentials.application.ports import CredentialCipher
from credbroker.contexts.exchange.application.errors import (
    ExchangeCredentialsRejectedError,
    ExchangeCredentialsValidationError,
)
from credbroker.contexts.exchange.application.ports import (
    ExchangeClock,
    ExchangeCredentialsRepository,
)
from credbroker.contexts.exchange.application.services import CachedFetcher
from credbroker.contexts.exchange.application.use_cases.test_exchange_connection import (
    TestExchangeConnectionUseCase,
)
from credbroker.contexts.exchange.domain.entities import ExchangeCredentials
from credbroker.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)

_DEFAULT_ACCOUNT_NAME = "Binance Futures"
_MAX_ACCOUNT_NAME_LENGTH = 64
_MAX_CREDENTIAL_LENGTH = 256


@dataclass(frozen=True, slots=True)
class ExchangeCredentialsView:
    """
    API-safe projection of a stored exchange account.
    """

    user_id: UserId
    account_name: str
    api_key_last4: str
    created_at: datetime


class RegisterExchangeCredentialsUseCase:
    """
    RegisterExchangeCredentialsUseCase — verify, encrypt and store a user's exchange key pair.

    Registering again replaces the previous active account (key rotation).

    Related:
      - src/credbroker/contexts/exchange/application/ports/exchange_credentials_repository.py
      - src/credbroker/contexts/credentials/application/ports/credential_cipher.py
      - apps/api/routes/exchange.py
    """

    def __init__(
        self,
        *,
        repository: ExchangeCredentialsRepository,
        cipher: CredentialCipher,
        connection_test: TestExchangeConnectionUseCase | None,
        clock: ExchangeClock,
        snapshot_fetcher: CachedFetcher | None = None,
    ) -> None:
        """
        Initialize use-case dependencies.

        Args:
            repository: Exchange credentials storage port.
            cipher: Credential cipher port.
            connection_test: Optional live verification step; `None` skips it.
            clock: Time source for `created_at`.
            snapshot_fetcher: Optional snapshot cache evicted after a successful save.
        Returns:
            None.
        Assumptions:
            Dependencies other than `connection_test` are non-null.
        Raises:
            ValueError: If any required dependency is missing.
        Side Effects:
            None.
        """
        if repository is None:  # type: ignore[truthy-bool]
            raise ValueError("RegisterExchangeCredentialsUseCase requires repository")
        if cipher is None:  # type: ignore[truthy-bool]
            raise ValueError("RegisterExchangeCredentialsUseCase requires cipher")
        if clock is None:  # type: ignore[truthy-bool]
            raise ValueError("RegisterExchangeCredentialsUseCase requires clock")
        self._repository = repository
        self._cipher = cipher
        self._connection_test = connection_test
        self._clock = clock
        self._snapshot_fetcher = snapshot_fetcher

    def register(
        self,
        *,
        user_id: UserId,
        api_key: str,
        api_secret: str,
        account_name: str | None = None,
    ) -> ExchangeCredentialsView:
        """
        Validate, optionally verify, encrypt and persist a key pair.

        Args:
            user_id: Owner user id.
            api_key: Plain API key.
            api_secret: Plain API secret.
            account_name: Optional display name.
        Returns:
            ExchangeCredentialsView: Projection without secrets.
        Assumptions:
            Plaintext values never leave this call except inside encrypted blobs.
        Raises:
            ExchangeCredentialsValidationError: If inputs are blank or too long.
            ExchangeCredentialsRejectedError: If exchange rejects the key pair.
            ConfigurationError: If master key is unusable.
        Side Effects:
            Performs one outbound HTTP request when verification is enabled.
            Writes one record in repository.
            Evicts cached account snapshot for the user.
        """
        normalized_api_key = api_key.strip()
        normalized_api_secret = api_secret.strip()
        if not normalized_api_key:
            raise ExchangeCredentialsValidationError(message="Exchange API key must be non-empty.")
        if not normalized_api_secret:
            raise ExchangeCredentialsValidationError(
                message="Exchange API secret must be non-empty."
            )
        for label, value in (("key", normalized_api_key), ("secret", normalized_api_secret)):
            if len(value) > _MAX_CREDENTIAL_LENGTH:
                raise ExchangeCredentialsValidationError(
                    message=(
                        f"Exchange API {label} must be at most "
                        f"{_MAX_CREDENTIAL_LENGTH} characters."
                    ),
                )
        normalized_name = _normalize_account_name(account_name=account_name)

        if self._connection_test is not None:
            result = self._connection_test.test(
                api_key=normalized_api_key,
                api_secret=normalized_api_secret,
            )
            if not result.success:
                raise ExchangeCredentialsRejectedError(
                    result_code=result.code,
                    message=result.message,
                )

        record = ExchangeCredentials(
            user_id=user_id,
            account_name=normalized_name,
            api_key_enc=self._cipher.encrypt(plaintext=normalized_api_key),
            api_secret_enc=self._cipher.encrypt(plaintext=normalized_api_secret),
            created_at=datetime.fromtimestamp(self._clock.now(), tz=timezone.utc),
        )
        self._repository.save(record=record)
        if self._snapshot_fetcher is not None:
            self._snapshot_fetcher.invalidate(user_id=user_id)
        log.info("exchange credentials registered user_id=%s", user_id)
        return ExchangeCredentialsView(
            user_id=user_id,
            account_name=record.account_name,
            api_key_last4=normalized_api_key[-4:],
            created_at=record.created_at,
        )


def _normalize_account_name(*, account_name: str | None) -> str:
    if account_name is None:
        return _DEFAULT_ACCOUNT_NAME
    normalized = account_name.strip()
    if not normalized:
        return _DEFAULT_ACCOUNT_NAME
    if len(normalized) > _MAX_ACCOUNT_NAME_LENGTH:
        raise ExchangeCredentialsValidationError(
            message=f"account_name must be at most {_MAX_ACCOUNT_NAME_LENGTH} characters.",
        )
    return normalized
