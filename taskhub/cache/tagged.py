"""Read-through cache adapter with tag-group invalidation."""

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Any

from taskhub.cache.backends import CacheBackend, InMemoryCache, RedisCache
from taskhub.config import get_settings
from taskhub.services.errors import TransientInfraError

logger = logging.getLogger(__name__)


class TaggedCache:
    """Wraps a CacheBackend with remember/invalidate semantics.

    The cache is an accelerator only: read or write failures are logged
    and the resolver's fresh value is returned instead. When the backend
    cannot group entries by tag, entries are stored untagged and any tag
    invalidation clears the whole store.
    """

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    def remember(
        self,
        key: str,
        ttl: int,
        resolver: Callable[[], Any],
        tags: tuple[str, ...] = (),
    ) -> Any:
        """Return the cached value for `key`, or compute, store and return it.

        A resolver result of None is returned but never stored.
        """
        try:
            cached = self.backend.get(key)
        except Exception as e:
            logger.warning(
                "Cache read failed, falling back to store",
                extra={"key": key, "error": str(e)},
            )
            cached = None

        if cached is not None:
            logger.debug("Cache hit", extra={"key": key})
            return cached

        value = resolver()
        if value is None:
            return None

        try:
            if self.backend.supports_tags:
                self.backend.set(key, value, ttl, tags=tags)
            else:
                self.backend.set(key, value, ttl)
        except Exception as e:
            logger.warning(
                "Cache write failed",
                extra={"key": key, "error": str(e)},
            )
        return value

    def invalidate_tags(self, *tags: str) -> None:
        """Drop every entry under `tags`; one retry, then TransientInfraError."""
        last_error: Exception | None = None
        for attempt in (1, 2):
            try:
                if self.backend.supports_tags:
                    removed = self.backend.delete_tagged(tags)
                    logger.debug(
                        "Cache tags invalidated",
                        extra={"tags": list(tags), "removed": removed},
                    )
                else:
                    self.backend.clear()
                    logger.debug(
                        "Cache store cleared (tags unsupported)",
                        extra={"tags": list(tags)},
                    )
                return
            except Exception as e:
                last_error = e
                logger.warning(
                    "Cache invalidation failed",
                    extra={"tags": list(tags), "attempt": attempt, "error": str(e)},
                )

        logger.error(
            "Cache invalidation gave up",
            extra={"tags": list(tags), "error": str(last_error)},
        )
        raise TransientInfraError("Failed to invalidate cache.") from last_error


@lru_cache
def get_cache() -> TaggedCache:
    """Get the process-wide cache, built from settings."""
    settings = get_settings()
    if settings.CACHE_BACKEND == "redis":
        backend: CacheBackend = RedisCache.from_url(
            settings.REDIS_URL, prefix=settings.CACHE_PREFIX
        )
    else:
        backend = InMemoryCache()
    logger.info("Cache backend configured", extra={"backend": settings.CACHE_BACKEND})
    return TaggedCache(backend)
