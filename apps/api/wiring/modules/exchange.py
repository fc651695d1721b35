"""
Composition helpers for exchange API module.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from fastapi import APIRouter
from redis import Redis

from apps.api.common import require_user_id
from apps.api.routes.exchange import build_exchange_router
from credbroker.contexts.credentials.adapters.outbound import (
    AesGcmCredentialCipher,
    resolve_master_key_settings,
)
from credbroker.contexts.exchange.adapters.outbound import (
    BinanceFuturesClientFactory,
    ExchangeRuntimeConfig,
    InMemoryExchangeCredentialsRepository,
    InMemoryResponseCache,
    RedisResponseCache,
    load_exchange_runtime_config,
    resolve_exchange_config_path,
)
from credbroker.contexts.exchange.application.ports import (
    ExchangeClock,
    ExchangeCredentialsRepository,
    ExchangeHttpSession,
    ResponseCache,
)
from credbroker.contexts.exchange.application.services import (
    CacheSweeper,
    CachedFetcher,
    ExchangeSessionFactory,
)
from credbroker.contexts.exchange.application.use_cases import (
    CloseAllPositionsUseCase,
    GetDailyRealizedPnlUseCase,
    LoadAccountSnapshotUseCase,
    RegisterExchangeCredentialsUseCase,
    TestExchangeConnectionUseCase,
)
from credbroker.platform.time import SystemClock

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ExchangeApiModule:
    """
    Wired exchange API router plus background cache sweeper owned by the app lifecycle.
    """

    router: APIRouter
    sweeper: CacheSweeper
    repository: ExchangeCredentialsRepository


def build_exchange_api_module(
    *,
    environ: Mapping[str, str],
    runtime_config: ExchangeRuntimeConfig | None = None,
    repository: ExchangeCredentialsRepository | None = None,
    http_session: ExchangeHttpSession | None = None,
    clock: ExchangeClock | None = None,
    redis_client: Redis | None = None,
) -> ExchangeApiModule:
    """
    Build fully wired exchange module from environment and runtime config.

    Related:
      - apps/api/routes/exchange.py
      - apps/api/main/app.py
      - src/credbroker/contexts/exchange/adapters/outbound/config/exchange_runtime_config.py

    Args:
        environ: Runtime environment mapping.
        runtime_config: Optional preloaded runtime config (tests/custom wiring).
        repository: Optional credentials repository override.
        http_session: Optional HTTP session override for exchange calls.
        clock: Optional clock override.
        redis_client: Optional prebuilt Redis client for `redis` cache backend.
    Returns:
        ExchangeApiModule: Router and sweeper.
    Assumptions:
        Master key is resolved once here so a misconfigured process fails at startup.
    Raises:
        ConfigurationError: If `ENCRYPTION_KEY` is missing.
        FileNotFoundError: If exchange runtime config path is missing.
        ValueError: If runtime config is invalid.
    Side Effects:
        Reads one YAML file when `runtime_config` is not provided.
    """
    cipher = AesGcmCredentialCipher(settings=resolve_master_key_settings(environ=environ))
    config = (
        runtime_config
        if runtime_config is not None
        else load_exchange_runtime_config(resolve_exchange_config_path(environ=environ))
    )
    effective_clock: ExchangeClock = clock if clock is not None else SystemClock()
    effective_repository = (
        repository if repository is not None else InMemoryExchangeCredentialsRepository()
    )
    cache = _build_response_cache(
        config=config,
        environ=environ,
        redis_client=redis_client,
    )
    client_factory = BinanceFuturesClientFactory(
        config=config.client,
        clock=effective_clock,
        session=http_session,
    )
    session_factory = ExchangeSessionFactory(cipher=cipher, client_factory=client_factory)
    connection_test = TestExchangeConnectionUseCase(client_factory=client_factory)
    snapshot_fetcher = CachedFetcher(
        cache=cache,
        clock=effective_clock,
        ttl_seconds=config.cache.ttl_seconds,
    )

    router = build_exchange_router(
        register_use_case=RegisterExchangeCredentialsUseCase(
            repository=effective_repository,
            cipher=cipher,
            connection_test=connection_test,
            clock=effective_clock,
            snapshot_fetcher=snapshot_fetcher,
        ),
        connection_test_use_case=connection_test,
        snapshot_use_case=LoadAccountSnapshotUseCase(
            repository=effective_repository,
            session_factory=session_factory,
            fetcher=snapshot_fetcher,
            clock=effective_clock,
        ),
        daily_pnl_use_case=GetDailyRealizedPnlUseCase(
            repository=effective_repository,
            session_factory=session_factory,
        ),
        close_all_use_case=CloseAllPositionsUseCase(
            repository=effective_repository,
            session_factory=session_factory,
        ),
        current_user_dependency=require_user_id,
    )
    sweeper = CacheSweeper(
        cache=cache,
        clock=effective_clock,
        ttl_seconds=config.cache.ttl_seconds,
        interval_seconds=config.cache.sweep_interval_seconds,
    )
    log.info(
        "exchange module wired base_url=%s cache_backend=%s ttl_seconds=%s",
        config.client.base_url,
        config.cache.backend,
        config.cache.ttl_seconds,
    )
    return ExchangeApiModule(router=router, sweeper=sweeper, repository=effective_repository)


def _build_response_cache(
    *,
    config: ExchangeRuntimeConfig,
    environ: Mapping[str, str],
    redis_client: Redis | None,
) -> ResponseCache:
    if config.cache.backend == "redis":
        return RedisResponseCache(
            config=config.cache.redis,
            ttl_seconds=config.cache.ttl_seconds,
            environ=environ,
            redis_client=redis_client,
        )
    return InMemoryResponseCache()


__all__ = ["ExchangeApiModule", "build_exchange_api_module"]
