"""
Weather lookup endpoint: GET /api/weather

Query:
  city       free-text city name; omitted or empty falls back to DEFAULT_CITY
  skipCache  true forces a fresh upstream attempt and overwrites the cache

Success returns the CanonicalWeatherResponse body directly (this is also the
contract the intermediary backend serves). Failure returns
{error, message, requestId} with a non-2xx status and never a partial record.
"""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from services.weather_api.weather.errors import (
    ConfigurationError,
    ProviderHttpError,
    UpstreamUnavailable,
)
from services.weather_api.weather.models import CanonicalWeatherResponse, CityQuery

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["weather"])

FAILURE_MESSAGE = "Failed to fetch weather data"


def _failure_status(exc: UpstreamUnavailable) -> int:
    cause = exc.cause
    if isinstance(cause, ConfigurationError):
        return 500
    if isinstance(cause, ProviderHttpError) and cause.status == 404:
        return 404
    return 502


@router.get("/weather", response_model=CanonicalWeatherResponse)
async def get_weather(
    request: Request,
    city: str | None = Query(None, max_length=100, description="City to look up"),
    skip_cache: bool = Query(False, alias="skipCache", description="Bypass the request cache"),
):
    settings = request.app.state.settings
    try:
        query = CityQuery(city=city or settings.default_city, skip_cache=skip_cache)
    except ValidationError:
        raise HTTPException(status_code=422, detail="city must not be empty")

    resolver = request.app.state.resolver
    try:
        return await resolver.resolve(query.city, bypass_cache=query.skip_cache)
    except UpstreamUnavailable as exc:
        status = _failure_status(exc)
        logger.error(
            "Weather lookup failed for city=%r (status=%d, requestId=%s): %s",
            query.city,
            status,
            request.state.request_id,
            exc,
        )
        return JSONResponse(
            status_code=status,
            content={
                "error": FAILURE_MESSAGE,
                "message": str(exc),
                "requestId": request.state.request_id,
            },
        )
