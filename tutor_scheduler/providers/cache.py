from __future__ import annotations

import json
import time
from collections import OrderedDict
from typing import Any, Optional

import redis
import structlog

from tutor_scheduler.config import Settings

log = structlog.get_logger(__name__)


class InMemoryLRU:
    def __init__(self, max_items: int, ttl_s: int):
        self.max_items = max_items
        self.ttl_s = ttl_s
        self._data: "OrderedDict[str, tuple[float, Any]]" = OrderedDict()

    def get(self, key: str) -> Optional[Any]:
        item = self._data.get(key)
        if item is None:
            return None
        expires_at, value = item
        if expires_at < time.time():
            self._data.pop(key, None)
            return None
        self._data.move_to_end(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self._data[key] = (time.time() + self.ttl_s, value)
        self._data.move_to_end(key)
        while len(self._data) > self.max_items:
            self._data.popitem(last=False)

    def __len__(self) -> int:
        return len(self._data)


class Cache:
    """Best-effort cache for query embeddings.

    Uses Redis when `redis_url` is configured and reachable, otherwise an
    in-process LRU with TTL. Backend failures count as misses.
    """

    def __init__(self, settings: Settings):
        self.ttl_s = settings.cache_ttl_s
        self._mem = InMemoryLRU(settings.cache_max_items, settings.cache_ttl_s)
        self._redis: Optional[redis.Redis] = None
        if settings.redis_url:
            try:
                client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
                client.ping()
                self._redis = client
                log.info("cache_backend", backend="redis")
            except redis.RedisError as e:
                log.warning("cache_redis_unavailable", error=str(e))

    @property
    def backend(self) -> str:
        return "redis" if self._redis is not None else "memory"

    def get_json(self, key: str) -> Optional[Any]:
        if self._redis is not None:
            try:
                raw = self._redis.get(key)
            except redis.RedisError as e:
                log.warning("cache_get_failed", key=key, error=str(e))
                return None
            return json.loads(raw) if raw is not None else None

        return self._mem.get(key)

    def set_json(self, key: str, value: Any, ttl_s: Optional[int] = None) -> None:
        if self._redis is not None:
            try:
                self._redis.setex(key, ttl_s or self.ttl_s, json.dumps(value))
            except redis.RedisError as e:
                log.warning("cache_set_failed", key=key, error=str(e))
            return

        self._mem.set(key, value)
