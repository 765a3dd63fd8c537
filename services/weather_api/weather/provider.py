"""
OpenWeatherMapClient: direct calls to the upstream weather provider.

Two independent endpoints, both queried by free-text city with metric units:
  /weather   current conditions
  /forecast  5 days of 3-hour points ({"list": [...], "city": {...}})

fetch_all() issues both concurrently and fails fast: if either call
fails the other is cancelled and no partial result is returned.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from services.weather_api.weather.errors import (
    ConfigurationError,
    MalformedUpstreamData,
    ProviderHttpError,
    ProviderNetworkError,
)

logger = logging.getLogger(__name__)

_OWM_BASE = "https://api.openweathermap.org/data/2.5"
WEATHER_ENDPOINT = f"{_OWM_BASE}/weather"
FORECAST_ENDPOINT = f"{_OWM_BASE}/forecast"

# HTTP timeout for OpenWeatherMap calls
_API_TIMEOUT_S = 8.0


class OpenWeatherMapClient:
    """
    Usage:
        client = OpenWeatherMapClient(api_key="...")
        current, forecast = await client.fetch_all("Paris")
    """

    def __init__(
        self,
        api_key: str,
        weather_url: str = WEATHER_ENDPOINT,
        forecast_url: str = FORECAST_ENDPOINT,
        timeout_s: float = _API_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_key:      OpenWeatherMap API key (OPENWEATHERMAP_API_KEY env var).
            weather_url:  Current-conditions endpoint.
            forecast_url: 5-day/3-hour forecast endpoint.
            timeout_s:    Per-request httpx timeout.
            transport:    Optional httpx transport (tests use httpx.MockTransport).
        """
        self._api_key = api_key
        self._weather_url = weather_url
        self._forecast_url = forecast_url
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport)

    def _require_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError("OpenWeather API key is not configured")

    async def _get(self, client: httpx.AsyncClient, url: str, city: str, endpoint: str) -> dict[str, Any]:
        try:
            resp = await client.get(url, params={"q": city, "appid": self._api_key, "units": "metric"})
        except httpx.TransportError as exc:
            logger.warning("OpenWeatherMap %s request failed for city=%r: %s", endpoint, city, exc)
            raise ProviderNetworkError(f"OpenWeather {endpoint} API unreachable: {exc}") from exc

        if resp.is_error:
            logger.warning(
                "OpenWeatherMap %s returned %d for city=%r: %s",
                endpoint,
                resp.status_code,
                city,
                resp.text[:200],
            )
            raise ProviderHttpError(resp.status_code, resp.text[:500], endpoint=endpoint)

        try:
            body = resp.json()
        except ValueError as exc:
            raise MalformedUpstreamData(f"OpenWeather {endpoint} response is not JSON") from exc
        if not isinstance(body, dict):
            raise MalformedUpstreamData(f"OpenWeather {endpoint} response is not an object")
        return body

    async def fetch_current(self, city: str) -> dict[str, Any]:
        self._require_key()
        async with self._client() as client:
            return await self._get(client, self._weather_url, city, "weather")

    async def fetch_forecast(self, city: str) -> dict[str, Any]:
        self._require_key()
        async with self._client() as client:
            return await self._get(client, self._forecast_url, city, "forecast")

    async def fetch_all(self, city: str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Fetch current + forecast together. Both must succeed."""
        self._require_key()
        async with self._client() as client:
            tasks = [
                asyncio.ensure_future(self._get(client, self._weather_url, city, "weather")),
                asyncio.ensure_future(self._get(client, self._forecast_url, city, "forecast")),
            ]
            try:
                current, forecast = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                # Let cancelled siblings unwind before the client closes
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        return current, forecast
