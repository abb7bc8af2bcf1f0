"""Key-value cache backends.

Values handed to a backend must be JSON-serializable; the Redis backend
stores them as JSON text and the in-memory backend keeps deep copies so
both behave the same way for callers.
"""

from __future__ import annotations

import copy
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import redis

from taskhub.services.errors import TransientInfraError

logger = logging.getLogger(__name__)


class CacheUnavailableError(TransientInfraError):
    """The cache backend could not be reached."""

    message = "Cache backend unavailable."


class CacheBackend(ABC):
    """Port for a key-value store with TTL and optional tag groups."""

    @property
    @abstractmethod
    def supports_tags(self) -> bool:
        """Whether set(..., tags=...) and delete_tagged() are honoured."""
        pass

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or expiry."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        """Store a value for `ttl` seconds, grouped under `tags`."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def delete_tagged(self, tags: Iterable[str]) -> int:
        """Drop every entry stored under any of `tags`; returns entries removed."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry owned by this backend."""
        pass


class InMemoryCache(CacheBackend):
    """Process-local cache with TTL expiry.

    Expired entries are dropped when read, and by a sweep that runs on
    write at most once every `sweep_interval` seconds, so keys that are
    never read again do not accumulate.

    Args:
        taggable: When False the backend behaves like a plain key-value
            store without tag groups (tags passed to set() are ignored).
        sweep_interval: Minimum seconds between expiry sweeps
    """

    def __init__(self, taggable: bool = True, sweep_interval: float = 60.0) -> None:
        self._taggable = taggable
        self._sweep_interval = sweep_interval
        self._next_sweep = 0.0
        self._entries: dict[str, tuple[Any, float]] = {}
        self._tags: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    @property
    def supports_tags(self) -> bool:
        return self._taggable

    def _forget(self, key: str) -> bool:
        """Remove `key` and its tag memberships. Caller holds the lock."""
        removed = self._entries.pop(key, None) is not None
        for tag in [tag for tag, keys in self._tags.items() if key in keys]:
            keys = self._tags[tag]
            keys.discard(key)
            if not keys:
                del self._tags[tag]
        return removed

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            self._forget(key)
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Swept expired cache entries", extra={"count": len(expired)})

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= time.monotonic():
                self._forget(key)
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        with self._lock:
            now = time.monotonic()
            if now >= self._next_sweep:
                self._sweep(now)
            self._entries[key] = (copy.deepcopy(value), now + ttl)
            if self._taggable:
                for tag in tags:
                    self._tags.setdefault(tag, set()).add(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._forget(key)

    def delete_tagged(self, tags: Iterable[str]) -> int:
        if not self._taggable:
            raise NotImplementedError("This cache store does not support tagging.")
        removed = 0
        with self._lock:
            for tag in tags:
                for key in self._tags.pop(tag, set()):
                    if self._forget(key):
                        removed += 1
        return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()

    def tagged_keys(self, tag: str) -> set[str]:
        with self._lock:
            return set(self._tags.get(tag, ()))

    def __len__(self) -> int:
        """Number of live entries; expired ones are swept first."""
        with self._lock:
            self._sweep(time.monotonic())
            return len(self._entries)


class RedisCache(CacheBackend):
    """Redis-backed cache; tag membership is kept in Redis sets.

    All keys are namespaced under `prefix` so clear() only touches
    entries written by this application.
    """

    def __init__(self, client: redis.Redis, prefix: str = "taskhub") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "taskhub") -> "RedisCache":
        client = redis.Redis.from_url(
            url,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client, prefix=prefix)

    @property
    def supports_tags(self) -> bool:
        return True

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self._prefix}:tag:{tag}"

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int, tags: Iterable[str] = ()) -> None:
        full_key = self._key(key)
        try:
            pipe = self._client.pipeline()
            pipe.set(full_key, json.dumps(value), ex=ttl)
            for tag in tags:
                tag_key = self._tag_key(tag)
                pipe.sadd(tag_key, full_key)
                # Tag sets live at least as long as their newest member
                pipe.expire(tag_key, ttl, gt=True)
                pipe.expire(tag_key, ttl, nx=True)
            pipe.execute()
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e

    def delete_tagged(self, tags: Iterable[str]) -> int:
        removed = 0
        try:
            for tag in tags:
                tag_key = self._tag_key(tag)
                members = self._client.smembers(tag_key)
                if members:
                    removed += self._client.delete(*members)
                self._client.delete(tag_key)
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e
        return removed

    def clear(self) -> None:
        try:
            keys = list(self._client.scan_iter(match=f"{self._prefix}:*"))
            if keys:
                self._client.delete(*keys)
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e
