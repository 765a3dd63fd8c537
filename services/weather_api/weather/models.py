"""
Canonical weather response shapes.

Whatever the data source, callers receive a CanonicalWeatherResponse
serialized with camelCase keys:

  {
    "city": "Paris", "country": "FR",
    "observationTime": "2026-10-19T12:00:00Z",
    "temperature": 14.2, "feelsLike": 13.1,
    "description": "light rain", "icon": "10d",
    "windSpeed": 4.1, "humidity": 81, "pressure": 1009, "visibility": 10000,
    "forecast": [{"date": ..., "temperature": ..., "icon": ..., "description": ...}],
    "source": "direct-provider",
    "cacheMetadata": {"cached": true, "cachedAt": "..."} | null
  }

Optional provider fields (feelsLike, windSpeed, humidity, pressure,
visibility) are None when the upstream omitted them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WeatherSource(str, Enum):
    intermediary = "intermediary"
    direct_provider = "direct-provider"


class DailyForecast(BaseModel):
    """One representative 3-hour point for a forecast day."""

    date: datetime
    temperature: float
    icon: str = ""
    description: str = ""


class CacheMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cached: bool
    cached_at: datetime | None = Field(default=None, alias="cachedAt")


class CanonicalWeatherResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    city: str = Field(min_length=1)
    country: str = Field(min_length=1)
    observation_time: datetime = Field(alias="observationTime")
    temperature: float
    feels_like: float | None = Field(default=None, alias="feelsLike")
    description: str = ""
    icon: str = ""
    wind_speed: float | None = Field(default=None, alias="windSpeed")
    humidity: float | None = None
    pressure: float | None = None
    visibility: float | None = None
    forecast: list[DailyForecast] = Field(default_factory=list, max_length=3)
    source: WeatherSource
    cache_metadata: CacheMetadata | None = Field(default=None, alias="cacheMetadata")

    def payload_dict(self) -> dict:
        """Serialized body without cache metadata (what the cache stores)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"cache_metadata"})


class CityQuery(BaseModel):
    """Inbound lookup: a free-text city plus the cache-bypass flag."""

    city: str
    skip_cache: bool = False

    @field_validator("city")
    @classmethod
    def city_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("city must not be empty")
        return v

    @property
    def cache_key(self) -> str:
        return cache_key_for(self.city)


def cache_key_for(city: str) -> str:
    """Namespaced, case-folded cache key: 'weather:' + lower(trim(city))."""
    return f"weather:{city.strip().lower()}"
