"""
Redis cache for bookstore API lookups that rarely change (the book catalog).

The cache is optional: when it is disabled, Redis is unreachable or a
command fails, reads miss and writes are skipped, so callers always fall
through to the API.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Callable, Optional

import redis
from redis.exceptions import RedisError
from flask import Flask, current_app

logger = logging.getLogger(__name__)

DECIMAL_TAG = '__decimal__'


def _encode(value: Any) -> str:
    """JSON with Decimals tagged so prices come back exact."""
    def tag(obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return {DECIMAL_TAG: str(obj)}
        raise TypeError(f"Cannot cache value of type {type(obj).__name__}")
    return json.dumps(value, default=tag)


def _decode(raw: str) -> Any:
    return json.loads(raw, object_hook=lambda d: Decimal(d[DECIMAL_TAG]) if DECIMAL_TAG in d else d)


class CacheService:
    """Keys are namespaced as {prefix}:{module}:{key}."""

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self._enabled = False
        self._prefix = 'bookstore'
        self._default_ttl = 60
        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        self._prefix = app.config.get('CACHE_KEY_PREFIX', self._prefix)
        self._default_ttl = app.config.get('CACHE_DEFAULT_TTL', self._default_ttl)
        if not app.config.get('CACHE_ENABLED', True):
            logger.info("[CACHE] Disabled by configuration")
            return

        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')
        try:
            self.client = redis.from_url(redis_url, decode_responses=True,
                                         socket_connect_timeout=3, socket_timeout=3,
                                         health_check_interval=30)
            self.client.ping()
        except RedisError as e:
            logger.warning(f"[CACHE] Redis unavailable at {redis_url}: {e}. Catalog lookups go to the API.")
            self.client = None
            return
        self._enabled = True
        logger.info(f"[CACHE] Redis connected: {redis_url}")

    def is_available(self) -> bool:
        if not self._enabled or self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except RedisError:
            return False

    def _build_key(self, module: str, key: str) -> str:
        return f"{self._prefix}:{module}:{key}"

    def get(self, module: str, key: str) -> Optional[Any]:
        """Cached value, or None on a miss or any cache failure."""
        if not self.is_available():
            return None
        try:
            raw = self.client.get(self._build_key(module, key))
            return None if raw is None else _decode(raw)
        except (RedisError, ValueError) as e:
            logger.warning(f"[CACHE] Read of {module}:{key} failed: {e}")
            return None

    def set(self, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.setex(self._build_key(module, key), ttl or self._default_ttl, _encode(value))
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] Write of {module}:{key} failed: {e}")
            return False

    def delete(self, module: str, key: str) -> bool:
        if not self.is_available():
            return False
        try:
            self.client.delete(self._build_key(module, key))
            return True
        except RedisError as e:
            logger.warning(f"[CACHE] Delete of {module}:{key} failed: {e}")
            return False

    def memoize(self, module: str, key: str, loader_fn: Callable[[], Any], ttl: Optional[int] = None) -> Any:
        """Cache-aside: the cached value, else loader_fn() stored for next time."""
        cached = self.get(module, key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(module, key, value, ttl)
        return value


def init_cache(app: Flask) -> CacheService:
    cache = CacheService(app)
    app.extensions['cache'] = cache
    return cache


def get_cache() -> CacheService:
    """Cache of the current app (see init_cache)."""
    return current_app.extensions['cache']
