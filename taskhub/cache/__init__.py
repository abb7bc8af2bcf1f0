"""Cache layer: pluggable backends behind a tag-aware read-through adapter."""

from taskhub.cache.backends import (
    CacheBackend,
    CacheUnavailableError,
    InMemoryCache,
    RedisCache,
)
from taskhub.cache.tagged import TaggedCache, get_cache

__all__ = [
    "CacheBackend",
    "CacheUnavailableError",
    "InMemoryCache",
    "RedisCache",
    "TaggedCache",
    "get_cache",
]
