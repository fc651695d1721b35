from .errors import (
    ExchangeCredentialsNotFoundError,
    ExchangeCredentialsRejectedError,
    ExchangeCredentialsValidationError,
    SignatureError,
    UpstreamError,
)
from .ports import (
    ExchangeClient,
    ExchangeClientFactory,
    ExchangeClock,
    ExchangeCredentialsRepository,
    ExchangeHttpResponse,
    ExchangeHttpSession,
    ResponseCache,
)
from .services import (
    CacheSweeper,
    CachedFetcher,
    ExchangeSessionFactory,
    RequestSigner,
    build_authenticated_request,
    canonical_query_string,
    sign_query,
)
from .use_cases import (
    CloseAllPositionsUseCase,
    ConnectionTestResult,
    GetDailyRealizedPnlUseCase,
    LoadAccountSnapshotUseCase,
    RegisterExchangeCredentialsUseCase,
    TestExchangeConnectionUseCase,
)

__all__ = [
    "CacheSweeper",
    "CachedFetcher",
    "CloseAllPositionsUseCase",
    "ConnectionTestResult",
    "ExchangeClient",
    "ExchangeClientFactory",
    "ExchangeClock",
    "ExchangeCredentialsNotFoundError",
    "ExchangeCredentialsRejectedError",
    "ExchangeCredentialsRepository",
    "ExchangeCredentialsValidationError",
    "ExchangeHttpResponse",
    "ExchangeHttpSession",
    "ExchangeSessionFactory",
    "GetDailyRealizedPnlUseCase",
    "LoadAccountSnapshotUseCase",
    "RegisterExchangeCredentialsUseCase",
    "RequestSigner",
    "ResponseCache",
    "SignatureError",
    "TestExchangeConnectionUseCase",
    "UpstreamError",
    "build_authenticated_request",
    "canonical_query_string",
    "sign_query",
]
