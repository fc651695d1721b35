from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping

from redis import Redis

from credbroker.contexts.exchange.application.ports.response_cache import ResponseCache
from credbroker.contexts.exchange.domain.entities import CacheEntry

log = logging.getLogger(__name__)

DEFAULT_REDIS_PASSWORD_ENV = "CREDBROKER_REDIS_PASSWORD"

# Deletes KEYS[1] only while it still holds ARGV[1].
_COMPARE_AND_DELETE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


@dataclass(frozen=True, slots=True)
class RedisResponseCacheConfig:
    """
    Redis connection and keyspace settings for shared response cache.

    Parameters:
    - host: Redis host.
    - port: Redis TCP port.
    - db: Redis logical database index.
    - key_prefix: namespace prepended to every cache key.
    - password_env: environment variable holding optional password.
    - socket_timeout_s: read/write socket timeout.
    - connect_timeout_s: connect timeout.
    """

    host: str = "127.0.0.1"
    port: int = 6379
    db: int = 0
    key_prefix: str = "credbroker:snapshot"
    password_env: str | None = DEFAULT_REDIS_PASSWORD_ENV
    socket_timeout_s: float = 2.0
    connect_timeout_s: float = 2.0

    def __post_init__(self) -> None:
        if not self.host.strip():
            raise ValueError("RedisResponseCacheConfig.host must be non-empty")
        if self.port <= 0 or self.port > 65535:
            raise ValueError("RedisResponseCacheConfig.port must be in [1, 65535]")
        if self.db < 0:
            raise ValueError("RedisResponseCacheConfig.db must be >= 0")
        if not self.key_prefix.strip():
            raise ValueError("RedisResponseCacheConfig.key_prefix must be non-empty")
        if self.socket_timeout_s <= 0 or self.connect_timeout_s <= 0:
            raise ValueError("RedisResponseCacheConfig timeouts must be > 0")


class RedisResponseCache(ResponseCache):
    """
    Shared response cache backed by Redis string keys holding JSON envelopes.

    Each entry also carries a server-side expiry so abandoned keys disappear even when
    no sweeper runs against this keyspace.
    """

    def __init__(
        self,
        *,
        config: RedisResponseCacheConfig,
        ttl_seconds: float,
        environ: Mapping[str, str],
        redis_client: Redis | None = None,
    ) -> None:
        """
        Initialize Redis cache dependencies.

        Parameters:
        - config: parsed Redis cache config.
        - ttl_seconds: cache TTL used to derive server-side expiry.
        - environ: environment mapping for optional Redis password lookup.
        - redis_client: optional prebuilt Redis client (tests/custom wiring).

        Returns:
        - None.

        Assumptions/Invariants:
        - Payloads are JSON-serializable.

        Errors/Exceptions:
        - Raises `ValueError` when TTL is not positive.

        Side effects:
        - Creates Redis client when `redis_client` is not provided.
        """
        if ttl_seconds <= 0:
            raise ValueError("RedisResponseCache.ttl_seconds must be > 0")
        self._config = config
        self._expire_seconds = max(1, math.ceil(ttl_seconds * 2))
        self._redis = (
            redis_client if redis_client is not None else self._build_redis_client(environ)
        )

    def get(self, *, key: str) -> CacheEntry | None:
        raw = self._redis.get(self._redis_key(key))
        if raw is None:
            return None
        try:
            envelope = json.loads(raw)
            return CacheEntry(
                key=key,
                payload=envelope["payload"],
                timestamp=float(envelope["timestamp"]),
            )
        except (ValueError, KeyError, TypeError):
            log.warning("response cache entry is corrupted key=%s", key)
            return None

    def set(self, *, key: str, payload: Any, timestamp: float) -> None:
        envelope = json.dumps({"payload": payload, "timestamp": timestamp})
        self._redis.set(self._redis_key(key), envelope, ex=self._expire_seconds)

    def delete(self, *, key: str) -> None:
        self._redis.delete(self._redis_key(key))

    def sweep(self, *, now: float, ttl_seconds: float) -> int:
        """
        Delete entries whose stored timestamp is outside TTL window.

        Parameters:
        - now: current epoch seconds.
        - ttl_seconds: TTL window.

        Returns:
        - Number of deleted keys.

        Assumptions/Invariants:
        - Only keys under configured prefix are inspected.
        - A key rewritten between read and delete is kept.

        Errors/Exceptions:
        - Propagates Redis client errors.

        Side effects:
        - Deletes Redis keys.
        """
        removed = 0
        for redis_key in self._redis.scan_iter(match=f"{self._config.key_prefix}:*"):
            raw = self._redis.get(redis_key)
            if raw is None:
                continue
            try:
                timestamp = float(json.loads(raw)["timestamp"])
            except (ValueError, KeyError, TypeError):
                timestamp = float("-inf")
            if now - timestamp < ttl_seconds:
                continue
            removed += int(self._redis.eval(_COMPARE_AND_DELETE_SCRIPT, 1, redis_key, raw))
        return removed

    def _redis_key(self, key: str) -> str:
        return f"{self._config.key_prefix}:{key}"

    def _build_redis_client(self, environ: Mapping[str, str]) -> Redis:
        return Redis(
            host=self._config.host,
            port=self._config.port,
            db=self._config.db,
            password=self._password_from_environment(environ),
            socket_timeout=self._config.socket_timeout_s,
            socket_connect_timeout=self._config.connect_timeout_s,
            decode_responses=True,
        )

    def _password_from_environment(self, environ: Mapping[str, str]) -> str | None:
        key = self._config.password_env
        if key is None:
            return None
        value = environ.get(key, "").strip()
        return value or None
