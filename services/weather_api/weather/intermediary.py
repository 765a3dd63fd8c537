"""
IntermediaryClient: best-effort lookup through the intermediary backend.

GET {base_url}/api/weather?city=... with a hard deadline and a single
attempt. try_fetch() never raises: any failure is logged and reported as
None so the resolver can take the direct provider path.

The deadline is enforced with asyncio.wait_for, which cancels the
in-flight request. A late response is therefore never delivered to the
caller and cannot reach the request cache.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable

import httpx

from services.weather_api.weather.errors import IntermediaryUnavailable, MalformedUpstreamData
from services.weather_api.weather.models import CanonicalWeatherResponse
from services.weather_api.weather.normalizer import normalize_intermediary

logger = logging.getLogger(__name__)

_WEATHER_PATH = "/api/weather"
_DEFAULT_TIMEOUT_S = 1.0


class IntermediaryClient:
    def __init__(
        self,
        base_url: str,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + _WEATHER_PATH
        self._timeout_s = timeout_s
        self._transport = transport
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def url(self) -> str:
        return self._url

    async def _fetch(self, city: str) -> CanonicalWeatherResponse:
        async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
            try:
                resp = await client.get(
                    self._url,
                    params={"city": city},
                    headers={"Cache-Control": "no-cache"},
                )
            except httpx.HTTPError as exc:
                raise IntermediaryUnavailable(f"request failed: {exc!r}") from exc

        if resp.is_error:
            raise IntermediaryUnavailable(f"returned HTTP {resp.status_code}")

        try:
            return normalize_intermediary(resp.json(), clock=self._clock)
        except (ValueError, MalformedUpstreamData) as exc:
            raise IntermediaryUnavailable(f"unusable body: {exc}") from exc

    async def try_fetch(self, city: str) -> CanonicalWeatherResponse | None:
        """Return the intermediary's response, or None if it is unavailable."""
        try:
            return await asyncio.wait_for(self._fetch(city), timeout=self._timeout_s)
        except asyncio.TimeoutError:
            logger.warning("Intermediary timed out after %.2fs for city=%r", self._timeout_s, city)
        except IntermediaryUnavailable as exc:
            logger.warning("Intermediary unavailable for city=%r: %s", city, exc)
        return None
