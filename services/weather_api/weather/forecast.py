"""
Forecast reduction: OpenWeatherMap 5-day/3-hour list -> at most 3 daily entries.

Two strategies, selected per deployment role:

  stride      every 8th point starting at index 0, first 3 of those.
              8 points = 24h, so when the list starts at the current slot
              "today" is day 1.
  skip_today  walk the list in order, drop points on the current UTC
              calendar day, keep the first point seen for each of the next
              3 distinct days.

The two disagree near midnight: a list starting at 22:00 gives stride
entries at 22:00 today/tomorrow/the day after, while skip_today starts at
tomorrow's first (00:00 or 01:00) slot.

Each forecast point looks like:
  {"dt": 1760875200, "main": {"temp": 14.2},
   "weather": [{"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}]}
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable

from pydantic import ValidationError

from services.weather_api.weather.errors import MalformedUpstreamData
from services.weather_api.weather.models import DailyForecast

logger = logging.getLogger(__name__)

# 3-hour slots per day
POINTS_PER_DAY = 8
MAX_FORECAST_DAYS = 3


class ForecastPolicy(str, Enum):
    stride = "stride"
    skip_today = "skip_today"


def _point_time(point: dict[str, Any]) -> datetime:
    try:
        return datetime.fromtimestamp(int(point["dt"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedUpstreamData(f"forecast point has no usable 'dt': {point!r:.200}") from exc


def _to_daily(point: dict[str, Any]) -> DailyForecast:
    if not isinstance(point, dict):
        raise MalformedUpstreamData(f"forecast point is not an object: {point!r:.200}")
    conditions = point.get("weather")
    if not isinstance(conditions, list):
        conditions = []
    main = point.get("main")
    temp = main.get("temp") if isinstance(main, dict) else None
    if not conditions or not isinstance(conditions[0], dict) or temp is None:
        raise MalformedUpstreamData("forecast point is missing 'weather[0]' or 'main.temp'")
    primary = conditions[0]
    try:
        return DailyForecast(
            date=_point_time(point),
            temperature=temp,
            icon=primary.get("icon", ""),
            description=primary.get("description", ""),
        )
    except ValidationError as exc:
        raise MalformedUpstreamData(f"forecast point has invalid fields: {exc}") from exc


def reduce_stride(points: list[dict[str, Any]]) -> list[DailyForecast]:
    return [_to_daily(p) for p in points[::POINTS_PER_DAY][:MAX_FORECAST_DAYS]]


def reduce_skip_today(points: list[dict[str, Any]], today: date) -> list[DailyForecast]:
    daily: list[DailyForecast] = []
    seen_days: set[date] = set()
    for point in points:
        day = _point_time(point).date()
        if day == today or day in seen_days:
            continue
        seen_days.add(day)
        daily.append(_to_daily(point))
        if len(daily) == MAX_FORECAST_DAYS:
            break
    return daily


def reduce_forecast(
    points: list[dict[str, Any]],
    policy: ForecastPolicy = ForecastPolicy.stride,
    clock: Callable[[], datetime] | None = None,
) -> list[DailyForecast]:
    """Reduce the provider's forecast list using the given policy.

    `clock` only matters for skip_today, where it defines "today" (UTC).
    """
    if not isinstance(points, list):
        raise MalformedUpstreamData("forecast 'list' is not an array")

    policy = ForecastPolicy(policy)
    if policy is ForecastPolicy.stride:
        daily = reduce_stride(points)
    else:
        now = (clock or (lambda: datetime.now(timezone.utc)))()
        daily = reduce_skip_today(points, now.astimezone(timezone.utc).date())

    logger.debug("Reduced %d forecast points to %d days (policy=%s)", len(points), len(daily), policy.value)
    return daily
