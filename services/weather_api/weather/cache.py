"""
Weather request cache: TTL key/value stores in front of the resolver.

Cache key format:  weather:{lower(trim(city))}
TTL:               1800 seconds (30 minutes) by default

An entry is live while now - written_at <= ttl. Expired entries are treated
as absent and deleted on the lookup that finds them (lazy eviction, no
background sweep).

Two backends share the WeatherCacheStore interface:
  InMemoryWeatherCache  process-local dict, reset on restart
  RedisWeatherCache     redis.asyncio, value = {"payload": ..., "writtenAt": ...}

Both take an injectable clock so expiry can be tested without sleeping.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: dict[str, Any]
    written_at: datetime

    def is_live(self, now: datetime, ttl: timedelta) -> bool:
        return now - self.written_at <= ttl


class WeatherCacheStore(ABC):
    """Get-with-expiry / put / delete over serialized canonical payloads."""

    backend_name = "abstract"

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = _utcnow) -> None:
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def now(self) -> datetime:
        return self._clock()

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the live entry for key, or None on miss / expiry."""

    @abstractmethod
    async def set(self, key: str, payload: dict[str, Any]) -> CacheEntry:
        """Write (or overwrite) key, stamped with the current time."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    def stats(self) -> dict[str, Any]:
        return {"backend": self.backend_name, "ttl_seconds": int(self.ttl.total_seconds())}


class InMemoryWeatherCache(WeatherCacheStore):
    backend_name = "memory"

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = _utcnow) -> None:
        super().__init__(ttl_seconds, clock)
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Weather cache miss: %s", key)
            return None
        if not entry.is_live(self.now(), self.ttl):
            logger.debug("Weather cache expired, evicting: %s", key)
            self._entries.pop(key, None)
            return None
        logger.debug("Weather cache hit: %s", key)
        return entry

    async def set(self, key: str, payload: dict[str, Any]) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, written_at=self.now())
        self._entries[key] = entry
        logger.debug("Weather cached: key=%s ttl=%ds", key, int(self.ttl.total_seconds()))
        return entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def stats(self) -> dict[str, Any]:
        return {**super().stats(), "entries": len(self._entries)}


class RedisWeatherCache(WeatherCacheStore):
    """
    Redis-backed store.

    Usage:
        cache = RedisWeatherCache(redis_client)
        entry = await cache.get("weather:tokyo")

    Redis EX is set to the TTL so keys disappear on their own, but reads
    still check writtenAt so expiry behaves exactly like the in-memory
    store. A None client or any Redis error degrades to a miss / no-op.
    """

    backend_name = "redis"

    def __init__(self, redis, ttl_seconds: int = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = _utcnow) -> None:
        """
        Args:
            redis: An async Redis client (redis.asyncio compatible), or None.
        """
        super().__init__(ttl_seconds, clock)
        self._redis = redis

    async def get(self, key: str) -> CacheEntry | None:
        if self._redis is None:
            return None

        try:
            raw = await self._redis.get(key)
        except Exception:
            logger.warning("Weather cache GET failed for key=%s", key, exc_info=True)
            return None

        if raw is None:
            logger.debug("Weather cache miss: %s", key)
            return None

        try:
            stored = json.loads(raw)
            entry = CacheEntry(
                key=key,
                payload=stored["payload"],
                written_at=datetime.fromisoformat(stored["writtenAt"]),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Weather cache entry unreadable, evicting: %s", key)
            await self.delete(key)
            return None

        if not entry.is_live(self.now(), self.ttl):
            logger.debug("Weather cache expired, evicting: %s", key)
            await self.delete(key)
            return None

        logger.debug("Weather cache hit: %s", key)
        return entry

    async def set(self, key: str, payload: dict[str, Any]) -> CacheEntry:
        entry = CacheEntry(key=key, payload=payload, written_at=self.now())
        if self._redis is None:
            return entry

        ttl_seconds = int(self.ttl.total_seconds())
        value = json.dumps({"payload": payload, "writtenAt": entry.written_at.isoformat()})
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
            logger.debug("Weather cached: key=%s ttl=%ds", key, ttl_seconds)
        except Exception:
            logger.warning("Weather cache SET failed for key=%s", key, exc_info=True)
        return entry

    async def delete(self, key: str) -> None:
        if self._redis is None:
            return

        try:
            await self._redis.delete(key)
            logger.debug("Weather cache invalidated: %s", key)
        except Exception:
            logger.warning("Weather cache DELETE failed for key=%s", key, exc_info=True)

    def stats(self) -> dict[str, Any]:
        return {**super().stats(), "connected": self._redis is not None}
