"""
Shared test fixtures for the weather API test suite.

Provides:
- a fixed FakeClock
- an UpstreamStub standing in for OpenWeatherMap and the intermediary backend
- resolver building blocks wired to the stub (no network, no Redis)
- an async FastAPI test client with the resolver injected into app state
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("OPENWEATHERMAP_API_KEY", "")
os.environ.setdefault("INTERMEDIARY_API_URL", "")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("SENTRY_DSN", "")

from services.weather_api.config import Settings  # noqa: E402
from services.weather_api.tests.helpers.factories import (  # noqa: E402
    FORECAST_PATH,
    INTERMEDIARY_BASE,
    WEATHER_PATH,
    FakeClock,
    UpstreamStub,
    make_owm_current,
    make_owm_forecast,
)
from services.weather_api.weather.cache import InMemoryWeatherCache  # noqa: E402
from services.weather_api.weather.forecast import ForecastPolicy  # noqa: E402
from services.weather_api.weather.intermediary import IntermediaryClient  # noqa: E402
from services.weather_api.weather.provider import OpenWeatherMapClient  # noqa: E402
from services.weather_api.weather.resolver import WeatherResolver  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> UpstreamStub:
    """Stub with a healthy provider for Paris; intermediary routes unset (404)."""
    stub = UpstreamStub()
    stub.respond(WEATHER_PATH, json=make_owm_current())
    stub.respond(FORECAST_PATH, json=make_owm_forecast())
    return stub


@pytest.fixture
def memory_cache(clock) -> InMemoryWeatherCache:
    return InMemoryWeatherCache(ttl_seconds=1800, clock=clock)


@pytest.fixture
def provider(upstream) -> OpenWeatherMapClient:
    return OpenWeatherMapClient(api_key="test-key-123", transport=upstream.transport)


@pytest.fixture
def intermediary(upstream, clock) -> IntermediaryClient:
    return IntermediaryClient(INTERMEDIARY_BASE, timeout_s=1.0, transport=upstream.transport, clock=clock)


@pytest.fixture
def resolver(memory_cache, provider, clock) -> WeatherResolver:
    """Resolver without an intermediary (direct provider only)."""
    return WeatherResolver(cache=memory_cache, provider=provider, clock=clock)


@pytest.fixture
def proxied_resolver(memory_cache, provider, intermediary, clock) -> WeatherResolver:
    """Resolver that tries the intermediary before the provider."""
    return WeatherResolver(
        cache=memory_cache,
        provider=provider,
        intermediary=intermediary,
        forecast_policy=ForecastPolicy.stride,
        clock=clock,
    )


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        openweathermap_api_key="test-key-123",
        default_city="London",
        sentry_dsn="",
        redis_url="",
    )


@pytest.fixture
async def app(test_settings, resolver):
    """Create a test FastAPI app with the stubbed resolver injected."""
    from services.weather_api.main import ROLE_FRONTEND, create_app

    _app = create_app(ROLE_FRONTEND, cfg=test_settings)
    _app.state.resolver = resolver
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP client bound to the test app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
