from .in_memory_response_cache import InMemoryResponseCache
from .redis_response_cache import RedisResponseCache, RedisResponseCacheConfig

__all__ = [
    "InMemoryResponseCache",
    "RedisResponseCache",
    "RedisResponseCacheConfig",
]
