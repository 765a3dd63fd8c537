"""
Map upstream bodies onto CanonicalWeatherResponse. Pure, no I/O.

Direct-provider input is the OpenWeatherMap /weather body (units=metric):
  {
    "name": "Paris", "sys": {"country": "FR"}, "dt": 1760875200,
    "main": {"temp": 14.2, "feels_like": 13.1, "humidity": 81, "pressure": 1009},
    "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}],
    "wind": {"speed": 4.1}, "visibility": 10000
  }

Intermediary input is either the canonical camelCase body or the legacy
backend body ("temp", "feels_like", "date", "_source", forecast "temp").
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable

from pydantic import ValidationError

from services.weather_api.weather.errors import MalformedUpstreamData
from services.weather_api.weather.models import (
    CanonicalWeatherResponse,
    DailyForecast,
    WeatherSource,
)

# Legacy backend key -> canonical key
_LEGACY_KEYS = {
    "temp": "temperature",
    "feels_like": "feelsLike",
    "date": "observationTime",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _section(body: dict[str, Any], key: str) -> dict[str, Any]:
    value = body.get(key)
    return value if isinstance(value, dict) else {}


def normalize(
    raw_current: dict[str, Any],
    forecast: list[DailyForecast],
    source: WeatherSource = WeatherSource.direct_provider,
    clock: Callable[[], datetime] = _utcnow,
) -> CanonicalWeatherResponse:
    """Build the canonical record from a provider current-conditions body.

    Raises MalformedUpstreamData when city name, country code, the first
    condition entry or the temperature is missing.
    """
    if not isinstance(raw_current, dict):
        raise MalformedUpstreamData("current weather body is not an object")

    main = _section(raw_current, "main")
    conditions = raw_current.get("weather")
    if not isinstance(conditions, list):
        conditions = []
    city = raw_current.get("name")
    country = _section(raw_current, "sys").get("country")
    temperature = main.get("temp")

    missing = [
        field
        for field, value in (
            ("name", city),
            ("sys.country", country),
            ("weather[0]", conditions[0] if conditions and isinstance(conditions[0], dict) else None),
            ("main.temp", temperature),
        )
        if value in (None, "")
    ]
    if missing:
        raise MalformedUpstreamData(f"current weather body is missing {', '.join(missing)}")

    primary = conditions[0]
    dt = raw_current.get("dt")
    if dt is None:
        observed = clock()
    else:
        try:
            observed = datetime.fromtimestamp(int(dt), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise MalformedUpstreamData(f"current weather body has no usable dt: {dt!r}") from exc

    try:
        return CanonicalWeatherResponse(
            city=city,
            country=country,
            observation_time=observed,
            temperature=temperature,
            feels_like=main.get("feels_like"),
            description=primary.get("description", ""),
            icon=primary.get("icon", ""),
            wind_speed=_section(raw_current, "wind").get("speed"),
            humidity=main.get("humidity"),
            pressure=main.get("pressure"),
            visibility=raw_current.get("visibility"),
            forecast=forecast,
            source=source,
        )
    except ValidationError as exc:
        raise MalformedUpstreamData(f"current weather body has invalid fields: {exc}") from exc


def _from_legacy(body: dict[str, Any]) -> dict[str, Any]:
    converted = {_LEGACY_KEYS.get(k, k): v for k, v in body.items() if k != "_source"}
    converted["forecast"] = [
        {("temperature" if k == "temp" else k): v for k, v in day.items()}
        for day in body.get("forecast") or []
        if isinstance(day, dict)
    ]
    return converted


def normalize_intermediary(body: Any, clock: Callable[[], datetime] = _utcnow) -> CanonicalWeatherResponse:
    """Validate an intermediary backend body and tag it as intermediary-sourced."""
    if not isinstance(body, dict):
        raise MalformedUpstreamData("intermediary body is not an object")

    data = dict(body) if "temperature" in body else _from_legacy(body)
    data.setdefault("observationTime", clock())
    data["source"] = WeatherSource.intermediary.value

    try:
        return CanonicalWeatherResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedUpstreamData(f"intermediary body does not match the canonical shape: {exc}") from exc
