"""Shared TTL cache for derived read views.

Values are stored JSON-encoded so the in-process and Redis backends behave the
same way. The cache is disposable: every backend failure degrades to calling
the loader directly, and wiping it at any time only costs extra reads.
"""

import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis

from app.core.config import settings

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the raw stored value, or None on a miss."""
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl: int) -> None:
        ...

    @abstractmethod
    def delete(self, *keys: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryBackend(CacheBackend):
    """Thread-safe in-process map of key -> (value, expires_at).

    Expired entries are dropped when read, and every sweep_every writes the
    whole map is swept so keys that are never read again don't accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 256) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._sweep_every = sweep_every
        self._writes = 0

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            now = self._clock()
            self._writes += 1
            if self._writes >= self._sweep_every:
                self._writes = 0
                self._sweep(now)
            self._entries[key] = (value, now + ttl)

    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisBackend(CacheBackend):
    def __init__(self, url: str, prefix: str = "") -> None:
        self._redis = redis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def get(self, key: str) -> str | None:
        return self._redis.get(self._prefix + key)

    def set(self, key: str, value: str, ttl: int) -> None:
        self._redis.set(self._prefix + key, value, ex=ttl)

    def delete(self, *keys: str) -> None:
        if keys:
            self._redis.delete(*[self._prefix + k for k in keys])

    def clear(self) -> None:
        for key in self._redis.scan_iter(match=f"{self._prefix}*"):
            self._redis.delete(key)


class NullBackend(CacheBackend):
    """Never stores anything; every read goes to the store."""

    def get(self, key: str) -> str | None:
        return None

    def set(self, key: str, value: str, ttl: int) -> None:
        return

    def delete(self, *keys: str) -> None:
        return

    def clear(self) -> None:
        return


class Cache:
    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    def remember(self, key: str, ttl: int, loader: Callable[[], Any]) -> Any:
        """Return the cached value for key, computing and storing it on a miss."""
        try:
            raw = self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}, reading through: {e}")
            return loader()

        if raw is not None:
            return json.loads(raw)

        value = loader()
        try:
            self.backend.set(key, json.dumps(value), ttl)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")
        return value

    def forget(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self.backend.delete(*keys)
        except Exception as e:
            logger.warning(f"Cache eviction failed for {len(keys)} keys: {e}")

    def flush(self) -> None:
        try:
            self.backend.clear()
        except Exception as e:
            logger.warning(f"Cache flush failed: {e}")


def _build_backend() -> CacheBackend:
    if settings.cache_backend == "memory":
        return MemoryBackend()
    if settings.cache_backend == "redis":
        return RedisBackend(settings.redis_url, prefix=settings.cache_prefix)
    if settings.cache_backend == "none":
        return NullBackend()
    raise ValueError(f"Unknown cache backend: {settings.cache_backend}")


_cache: Cache | None = None
_cache_lock = threading.Lock()


def get_cache() -> Cache:
    global _cache
    with _cache_lock:
        if _cache is None:
            _cache = Cache(_build_backend())
    return _cache
