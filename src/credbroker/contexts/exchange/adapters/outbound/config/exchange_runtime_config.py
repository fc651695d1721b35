from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from credbroker.contexts.exchange.adapters.outbound.cache import RedisResponseCacheConfig
from credbroker.contexts.exchange.adapters.outbound.clients.binance import (
    BINANCE_FUTURES_MAINNET,
    BinanceFuturesClientConfig,
)
from credbroker.contexts.exchange.application.services import (
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_RECV_WINDOW_MS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)

_ENV_NAME_KEY = "CREDBROKER_ENV"
_EXCHANGE_CONFIG_PATH_KEY = "CREDBROKER_EXCHANGE_CONFIG"
_ALLOWED_ENVS = ("dev", "prod", "test")
_CACHE_BACKENDS = ("memory", "redis")


@dataclass(frozen=True, slots=True)
class ResponseCacheRuntimeConfig:
    """
    ResponseCacheRuntimeConfig — response cache backend selection and timing.

    Related:
      - src/credbroker/contexts/exchange/application/services/cached_fetcher.py
      - src/credbroker/contexts/exchange/application/services/cache_sweeper.py
    """

    backend: str = "memory"
    ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    redis: RedisResponseCacheConfig = field(default_factory=RedisResponseCacheConfig)

    def __post_init__(self) -> None:
        if self.backend not in _CACHE_BACKENDS:
            raise ValueError(
                f"cache.backend must be one of {_CACHE_BACKENDS}, got {self.backend!r}"
            )
        if self.ttl_seconds <= 0:
            raise ValueError("cache.ttl_seconds must be > 0")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("cache.sweep_interval_seconds must be > 0")


@dataclass(frozen=True, slots=True)
class ExchangeRuntimeConfig:
    """
    ExchangeRuntimeConfig — parsed `exchange_client.yaml` settings.

    Related:
      - configs/dev/exchange_client.yaml
      - apps/api/wiring/modules/exchange.py
    """

    version: int
    client: BinanceFuturesClientConfig
    cache: ResponseCacheRuntimeConfig

    def __post_init__(self) -> None:
        if self.version <= 0:
            raise ValueError("ExchangeRuntimeConfig.version must be > 0")


def resolve_exchange_config_path(*, environ: Mapping[str, str]) -> Path:
    """
    Resolve exchange runtime config path from environment.

    Args:
        environ: Runtime environment mapping.
    Returns:
        Path: Resolved `exchange_client.yaml` path.
    Assumptions:
        Precedence is `CREDBROKER_EXCHANGE_CONFIG` >
        `configs/<CREDBROKER_ENV>/exchange_client.yaml`.
    Raises:
        ValueError: If `CREDBROKER_ENV` value is unsupported.
    Side Effects:
        None.
    """
    override_path = environ.get(_EXCHANGE_CONFIG_PATH_KEY, "").strip()
    if override_path:
        return Path(override_path)
    env_name = environ.get(_ENV_NAME_KEY, "dev").strip().lower()
    if env_name not in _ALLOWED_ENVS:
        raise ValueError(f"{_ENV_NAME_KEY} must be one of {_ALLOWED_ENVS}, got {env_name!r}")
    return Path("configs") / env_name / "exchange_client.yaml"


def load_exchange_runtime_config(path: str | Path) -> ExchangeRuntimeConfig:
    """
    Load and validate exchange runtime YAML config.

    Args:
        path: Path to `exchange_client.yaml`.
    Returns:
        ExchangeRuntimeConfig: Parsed runtime config.
    Assumptions:
        YAML has top-level `version` and `exchange_client` mapping; `cache` is optional.
    Raises:
        FileNotFoundError: If config path does not exist.
        ValueError: If YAML shape/values are invalid.
    Side Effects:
        Reads one config file from disk.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"exchange client config not found: {config_path}")

    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping):
        raise ValueError("exchange client config must be mapping at top-level")
    return parse_exchange_runtime_config(payload)


def parse_exchange_runtime_config(payload: Mapping[str, Any]) -> ExchangeRuntimeConfig:
    """
    Build runtime config from already decoded YAML mapping.
    """
    version = _get_int(payload, "version", required=True)
    client_map = _get_mapping(payload, "exchange_client", required=True)
    cache_map = _get_mapping(payload, "cache", required=False)
    redis_map = _get_mapping(cache_map, "redis", required=False)

    return ExchangeRuntimeConfig(
        version=version,
        client=BinanceFuturesClientConfig(
            base_url=_get_str_with_default(
                client_map,
                "base_url",
                default=BINANCE_FUTURES_MAINNET,
            ),
            recv_window_ms=_get_int_with_default(
                client_map,
                "recv_window_ms",
                default=DEFAULT_RECV_WINDOW_MS,
            ),
            timeout_s=_get_float_with_default(client_map, "timeout_s", default=8.0),
        ),
        cache=ResponseCacheRuntimeConfig(
            backend=_get_str_with_default(cache_map, "backend", default="memory"),
            ttl_seconds=_get_float_with_default(
                cache_map,
                "ttl_seconds",
                default=DEFAULT_CACHE_TTL_SECONDS,
            ),
            sweep_interval_seconds=_get_float_with_default(
                cache_map,
                "sweep_interval_seconds",
                default=DEFAULT_SWEEP_INTERVAL_SECONDS,
            ),
            redis=RedisResponseCacheConfig(
                host=_get_str_with_default(redis_map, "host", default="127.0.0.1"),
                port=_get_int_with_default(redis_map, "port", default=6379),
                db=_get_int_with_default(redis_map, "db", default=0),
                key_prefix=_get_str_with_default(
                    redis_map,
                    "key_prefix",
                    default="credbroker:snapshot",
                ),
                password_env=_get_optional_str_with_default(
                    redis_map,
                    "password_env",
                    default="CREDBROKER_REDIS_PASSWORD",
                ),
                socket_timeout_s=_get_float_with_default(
                    redis_map,
                    "socket_timeout_s",
                    default=2.0,
                ),
                connect_timeout_s=_get_float_with_default(
                    redis_map,
                    "connect_timeout_s",
                    default=2.0,
                ),
            ),
        ),
    )


def _get_mapping(data: Mapping[str, Any], key: str, *, required: bool) -> Mapping[str, Any]:
    """
    Read nested mapping value from config payload.

    Args:
        data: Source mapping.
        key: Mapping key name.
        required: Whether key is required.
    Returns:
        Mapping[str, Any]: Nested mapping or empty mapping for optional missing key.
    Assumptions:
        Optional missing sections are represented as empty mapping.
    Raises:
        ValueError: If required key is missing or value is not mapping.
    Side Effects:
        None.
    """
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"missing required key: {key}")
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"expected mapping at key '{key}', got {type(value).__name__}")
    return value


def _get_int(data: Mapping[str, Any], key: str, *, required: bool) -> int:
    value = data.get(key)
    if value is None:
        if required:
            raise ValueError(f"missing required key: {key}")
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected int at key '{key}', got {type(value).__name__}")
    return value


def _get_int_with_default(data: Mapping[str, Any], key: str, *, default: int) -> int:
    if key not in data:
        return default
    return _get_int(data, key, required=True)


def _get_float_with_default(data: Mapping[str, Any], key: str, *, default: float) -> float:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected float at key '{key}', got {type(value).__name__}")
    return float(value)


def _get_str_with_default(data: Mapping[str, Any], key: str, *, default: str) -> str:
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"expected string at key '{key}', got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"key '{key}' must be non-empty")
    return normalized


def _get_optional_str_with_default(
    data: Mapping[str, Any],
    key: str,
    *,
    default: str | None,
) -> str | None:
    """
    Read optional nullable string config value with explicit default.

    Args:
        data: Source mapping.
        key: Nullable string key name.
        default: Value used when key is absent.
    Returns:
        str | None: Parsed string value or None.
    Assumptions:
        Empty strings are normalized to None.
    Raises:
        ValueError: If present value is not string or null.
    Side Effects:
        None.
    """
    if key not in data:
        return default
    value = data[key]
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected string or null at key '{key}', got {type(value).__name__}")
    return value.strip() or None
