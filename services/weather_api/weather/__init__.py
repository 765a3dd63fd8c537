"""
Weather lookup package.

Resolves a city name to one canonical weather record: request cache first,
then the optional intermediary backend, then OpenWeatherMap directly.
"""

from services.weather_api.weather.cache import (
    CacheEntry,
    InMemoryWeatherCache,
    RedisWeatherCache,
    WeatherCacheStore,
)
from services.weather_api.weather.errors import (
    ConfigurationError,
    IntermediaryUnavailable,
    MalformedUpstreamData,
    ProviderHttpError,
    ProviderNetworkError,
    UpstreamUnavailable,
    WeatherError,
)
from services.weather_api.weather.forecast import ForecastPolicy, reduce_forecast
from services.weather_api.weather.intermediary import IntermediaryClient
from services.weather_api.weather.models import (
    CanonicalWeatherResponse,
    CityQuery,
    DailyForecast,
    WeatherSource,
)
from services.weather_api.weather.provider import OpenWeatherMapClient
from services.weather_api.weather.resolver import WeatherResolver

__all__ = [
    "CacheEntry",
    "CanonicalWeatherResponse",
    "CityQuery",
    "ConfigurationError",
    "DailyForecast",
    "ForecastPolicy",
    "InMemoryWeatherCache",
    "IntermediaryClient",
    "IntermediaryUnavailable",
    "MalformedUpstreamData",
    "OpenWeatherMapClient",
    "ProviderHttpError",
    "ProviderNetworkError",
    "RedisWeatherCache",
    "UpstreamUnavailable",
    "WeatherCacheStore",
    "WeatherError",
    "WeatherResolver",
    "WeatherSource",
    "reduce_forecast",
]
