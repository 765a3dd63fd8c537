"""
Weather API FastAPI service: city lookup with caching and intermediary fallback.

Entrypoint: uvicorn services.weather_api.main:app --host 0.0.0.0 --port 8000

The same app factory also builds the intermediary backend role
(services.weather_api.backend_main:app), which serves the identical
/api/weather contract without a further intermediary hop.
"""

import logging
import uuid
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI, Request, Response
from starlette.responses import JSONResponse

from services.weather_api.config import Settings, settings
from services.weather_api.middleware.cors import setup_cors
from services.weather_api.middleware.sentry import setup_sentry
from services.weather_api.routers import health, weather
from services.weather_api.weather.cache import InMemoryWeatherCache, RedisWeatherCache, WeatherCacheStore
from services.weather_api.weather.forecast import ForecastPolicy
from services.weather_api.weather.intermediary import IntermediaryClient
from services.weather_api.weather.provider import OpenWeatherMapClient
from services.weather_api.weather.resolver import WeatherResolver

logger = logging.getLogger(__name__)

ROLE_FRONTEND = "frontend"
ROLE_INTERMEDIARY = "intermediary"


def build_resolver(cfg: Settings, role: str, cache: WeatherCacheStore | None = None) -> WeatherResolver:
    """Wire cache, provider client and (frontend only) the intermediary proxy."""
    provider = OpenWeatherMapClient(
        api_key=cfg.openweathermap_api_key,
        weather_url=cfg.openweathermap_weather_url,
        forecast_url=cfg.openweathermap_forecast_url,
        timeout_s=cfg.weather_api_timeout_s,
    )

    intermediary = None
    if role == ROLE_FRONTEND and cfg.intermediary_api_url:
        intermediary = IntermediaryClient(cfg.intermediary_api_url, timeout_s=cfg.intermediary_timeout_s)

    policy = cfg.forecast_policy if role == ROLE_FRONTEND else cfg.backend_forecast_policy

    return WeatherResolver(
        cache=cache or InMemoryWeatherCache(ttl_seconds=cfg.weather_cache_ttl_s),
        provider=provider,
        intermediary=intermediary,
        forecast_policy=ForecastPolicy(policy),
    )


async def _connect_redis(cfg: Settings):
    try:
        client = aioredis.from_url(cfg.redis_url, decode_responses=True, socket_connect_timeout=5)
        await client.ping()
        return client
    except Exception as e:
        # Cache degrades to process-local; lookups still work
        logger.warning("Redis unavailable, using in-memory weather cache: %s", e)
        return None


def create_app(role: str = ROLE_FRONTEND, cfg: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        setup_sentry()

        redis_client = None
        if cfg.redis_url:
            redis_client = await _connect_redis(cfg)
        if redis_client is not None:
            app.state.resolver = build_resolver(
                cfg, role, cache=RedisWeatherCache(redis_client, ttl_seconds=cfg.weather_cache_ttl_s)
            )
        app.state.redis = redis_client

        logger.info("Weather API started (role=%s, cache=%s)", role, app.state.resolver.cache.backend_name)

        yield

        if redis_client:
            await redis_client.aclose()

    app = FastAPI(
        title="Weather API" if role == ROLE_FRONTEND else "Weather Intermediary API",
        version=cfg.app_version,
        docs_url="/docs" if cfg.environment == "development" else None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.role = role
    app.state.resolver = build_resolver(cfg, role)

    # -- Middleware (order matters: last added = outermost in Starlette) --

    app.include_router(health.router)
    app.include_router(weather.router)

    # CORS (needs to be outermost to handle preflight)
    setup_cors(app)

    # Request ID injection
    @app.middleware("http")
    async def request_envelope_middleware(request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4()))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # -- Exception Handlers --

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": {"code": "NOT_FOUND", "message": "Resource not found."},
                "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
            },
        )

    @app.exception_handler(422)
    async def validation_error_handler(request: Request, exc) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": str(exc.detail) if hasattr(exc, "detail") else "Validation error.",
                },
                "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
            },
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc) -> JSONResponse:
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
                "requestId": getattr(request.state, "request_id", str(uuid.uuid4())),
            },
        )

    return app


app = create_app(ROLE_FRONTEND)
