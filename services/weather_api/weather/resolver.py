"""
WeatherResolver: city name -> CanonicalWeatherResponse.

Resolution order:
  1. Request cache (skipped when bypass_cache=True). A live hit is returned
     with cacheMetadata {cached: true, cachedAt: <write time>}; its source
     is whatever was stored.
  2. Intermediary backend, if configured. One attempt under a hard deadline;
     any failure means "no data" and is never surfaced.
  3. Direct provider: current + forecast, forecast reduction, normalization.
     Any failure here is final and raised as UpstreamUnavailable.
  4. The result is written to the cache (overwriting any prior entry) and
     returned. Nothing is written when resolution fails.

Concurrent lookups for the same city are not coalesced; each may reach
upstream.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import ValidationError

from services.weather_api.weather.cache import CacheEntry, WeatherCacheStore
from services.weather_api.weather.errors import UpstreamUnavailable, WeatherError
from services.weather_api.weather.forecast import ForecastPolicy, reduce_forecast
from services.weather_api.weather.intermediary import IntermediaryClient
from services.weather_api.weather.models import (
    CacheMetadata,
    CanonicalWeatherResponse,
    WeatherSource,
    cache_key_for,
)
from services.weather_api.weather.normalizer import normalize
from services.weather_api.weather.provider import OpenWeatherMapClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WeatherResolver:
    """
    Usage:
        resolver = WeatherResolver(cache=InMemoryWeatherCache(), provider=OpenWeatherMapClient(key))
        response = await resolver.resolve("Paris")
    """

    def __init__(
        self,
        cache: WeatherCacheStore,
        provider: OpenWeatherMapClient,
        intermediary: IntermediaryClient | None = None,
        forecast_policy: ForecastPolicy = ForecastPolicy.stride,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._cache = cache
        self._provider = provider
        self._intermediary = intermediary
        self._forecast_policy = ForecastPolicy(forecast_policy)
        self._clock = clock

    @property
    def cache(self) -> WeatherCacheStore:
        return self._cache

    @property
    def forecast_policy(self) -> ForecastPolicy:
        return self._forecast_policy

    async def resolve(self, city: str, bypass_cache: bool = False) -> CanonicalWeatherResponse:
        key = cache_key_for(city)
        city = city.strip()

        if not bypass_cache:
            cached = await self._from_cache(key)
            if cached is not None:
                return cached

        result = None
        if self._intermediary is not None:
            result = await self._intermediary.try_fetch(city)

        if result is None:
            try:
                result = await self._fetch_direct(city)
            except WeatherError as exc:
                raise UpstreamUnavailable(exc) from exc

        await self._cache.set(key, result.payload_dict())
        logger.info("Resolved weather for %r from %s", city, result.source.value)
        return result

    async def _from_cache(self, key: str) -> CanonicalWeatherResponse | None:
        entry = await self._cache.get(key)
        if entry is None:
            return None
        try:
            return self._annotate(entry)
        except ValidationError:
            logger.warning("Discarding unreadable cache entry: %s", key)
            await self._cache.delete(key)
            return None

    @staticmethod
    def _annotate(entry: CacheEntry) -> CanonicalWeatherResponse:
        response = CanonicalWeatherResponse.model_validate(entry.payload)
        response.cache_metadata = CacheMetadata(cached=True, cached_at=entry.written_at)
        return response

    async def _fetch_direct(self, city: str) -> CanonicalWeatherResponse:
        current, forecast_body = await self._provider.fetch_all(city)
        points: Any = forecast_body.get("list", [])
        daily = reduce_forecast(points, self._forecast_policy, clock=self._clock)
        return normalize(current, daily, WeatherSource.direct_provider, clock=self._clock)

    def stats(self) -> dict[str, Any]:
        return {
            "cache": self._cache.stats(),
            "intermediary": self._intermediary.url if self._intermediary else None,
            "forecast_policy": self._forecast_policy.value,
            "provider_configured": self._provider.configured,
        }
