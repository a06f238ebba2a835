"""
Response cache for read operations.

Values are stored as the JSON text of the response that would otherwise be
computed. Invalidation is coarse: every write clears the whole namespace.

Every stored key carries the cache generation read before the value was
computed, and a clear bumps the generation. A read that raced a write
therefore stores its value under a generation nobody reads any more.

Two backends share one interface:
- MemoryCacheBackend: in-process dict, guarded by a lock (default).
- RedisCacheBackend: shared Redis instance with graceful fallback; a Redis
  outage degrades to cache misses instead of failed requests.
"""
import json
import logging
import threading
import time
from typing import Any, Callable, Optional

from redis import Redis
from redis.exceptions import RedisError

from accounts.core.config import settings
import accounts.core.logging_config  # noqa: F401 - registers Logger.trace

logger = logging.getLogger(__name__)


class MemoryCacheBackend:
    """Thread-safe in-process key/value store with optional expiry."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, Optional[float]]] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def generation(self) -> Optional[int]:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl: int = 0) -> bool:
        expires_at = time.monotonic() + ttl if ttl > 0 else None
        with self._lock:
            self._entries[key] = (value, expires_at)
        return True

    def clear(self) -> bool:
        with self._lock:
            self._generation += 1
            self._entries.clear()
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisCacheBackend:
    """
    Redis-backed store. Values live under ``{prefix}v…`` so clear() is
    scoped; the generation counter lives at ``{prefix}generation``.
    """

    def __init__(self, url: str, prefix: str = "accounts:", client: Optional[Redis] = None) -> None:
        self._prefix = prefix
        self._generation_key = f"{prefix}generation"
        self._client = client or Redis.from_url(url)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def generation(self) -> Optional[int]:
        try:
            raw = self._client.get(self._generation_key)
        except RedisError as e:
            logger.warning("Redis generation read failed: %s", e)
            return None
        return int(raw) if raw is not None else 0

    def get(self, key: str) -> Optional[str]:
        try:
            raw = self._client.get(self._key(key))
        except RedisError as e:
            logger.warning("Redis GET failed: %s", e)
            return None
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    def set(self, key: str, value: str, ttl: int = 0) -> bool:
        try:
            if ttl > 0:
                self._client.setex(self._key(key), ttl, value)
            else:
                self._client.set(self._key(key), value)
            return True
        except RedisError as e:
            logger.warning("Redis SET failed: %s", e)
            return False

    def clear(self) -> bool:
        # after INCR no reader addresses values of the old generation
        try:
            self._client.incr(self._generation_key)
        except RedisError as e:
            logger.error("Redis generation bump failed: %s", e)
            return False
        try:
            keys = list(self._client.scan_iter(match=f"{self._prefix}v*"))
            if keys:
                self._client.delete(*keys)
        except RedisError as e:
            # values of the old generation are unreachable; they only waste memory
            logger.warning("Redis namespace sweep failed: %s", e)
        return True


class ResponseCache:
    """JSON response cache on top of a backend."""

    def __init__(self, backend, ttl: int = 0) -> None:
        self._backend = backend
        self._ttl = ttl

    @staticmethod
    def _versioned(generation: int, key: str) -> str:
        return f"v{generation}:{key}"

    def _get(self, generation: Optional[int], key: str) -> Optional[Any]:
        if generation is None:
            return None
        raw = self._backend.get(self._versioned(generation, key))
        if raw is None:
            logger.trace("response_cache_miss key=%s", key)
            return None
        logger.trace("response_cache_hit key=%s", key)
        return json.loads(raw)

    def _set(self, generation: Optional[int], key: str, value: Any) -> None:
        if generation is None:
            return
        self._backend.set(self._versioned(generation, key), json.dumps(value), self._ttl)
        logger.trace("response_cache_set key=%s generation=%s", key, generation)

    def get(self, key: str) -> Optional[Any]:
        return self._get(self._backend.generation(), key)

    def set(self, key: str, value: Any) -> None:
        self._set(self._backend.generation(), key, value)

    def get_or_set(self, key: str, factory: Callable[[], Any]) -> Any:
        """
        Return the cached value for *key*, computing and storing it on a miss.

        The generation is read before *factory* runs. If a write clears the
        cache meanwhile, the computed value lands in the superseded
        generation and is never served.
        """
        generation = self._backend.generation()
        cached = self._get(generation, key)
        if cached is not None:
            return cached
        value = factory()
        self._set(generation, key, value)
        return value

    def invalidate_all(self) -> None:
        if self._backend.clear():
            logger.info("Response cache cleared")
        else:
            logger.error("Response cache could not be cleared")


def build_response_cache(url: Optional[str] = None) -> ResponseCache:
    """Create the cache described by *url* (defaults to settings.CACHE_URL)."""
    url = url or settings.CACHE_URL
    if url.startswith("memory://"):
        backend = MemoryCacheBackend()
    elif url.startswith(("redis://", "rediss://", "unix://")):
        backend = RedisCacheBackend(url, prefix=settings.CACHE_KEY_PREFIX)
    else:
        raise ValueError(f"Unsupported cache URL: {url}")
    logger.info("Response cache backend=%s", type(backend).__name__)
    return ResponseCache(backend, ttl=settings.CACHE_TTL_SECONDS)


_response_cache: Optional[ResponseCache] = None
_response_cache_lock = threading.Lock()


def get_response_cache() -> ResponseCache:
    """Return the process-wide response cache, creating it on first use."""
    global _response_cache
    with _response_cache_lock:
        if _response_cache is None:
            _response_cache = build_response_cache()
        return _response_cache
