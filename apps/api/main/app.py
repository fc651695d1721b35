"""
FastAPI application factory for credential broker API.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping

from fastapi import FastAPI

from apps.api.common import register_api_error_handlers
from apps.api.wiring.modules import ExchangeApiModule, build_exchange_api_module


def create_app(
    *,
    environ: Mapping[str, str] | None = None,
    exchange_module: ExchangeApiModule | None = None,
) -> FastAPI:
    """
    Build FastAPI app with exchange module wired at startup.

    Related: apps.api.routes.exchange,
      apps.api.wiring.modules.exchange,
      credbroker.contexts.exchange.application.services.cache_sweeper

    Args:
        environ: Optional environment mapping override.
        exchange_module: Optional prebuilt exchange module (tests/custom wiring).
    Returns:
        FastAPI: Application instance with registered routers.
    Assumptions:
        Module wiring performs fail-fast validation before first request.
    Raises:
        ConfigurationError: If `ENCRYPTION_KEY` is missing.
        FileNotFoundError: If exchange runtime config path is missing.
        ValueError: If runtime config is invalid.
    Side Effects:
        Starts response cache sweeper thread for the application lifespan.
    """
    effective_environ = os.environ if environ is None else environ
    module = (
        exchange_module
        if exchange_module is not None
        else build_exchange_api_module(environ=effective_environ)
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        module.sweeper.start()
        try:
            yield
        finally:
            module.sweeper.stop()

    app = FastAPI(
        title="Credential Broker API",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_api_error_handlers(app=app)
    app.include_router(module.router)
    return app
