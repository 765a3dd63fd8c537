"""
Application configuration via pydantic-settings.
All config read from environment variables with sensible defaults for local dev.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # App
    app_name: str = "weather-api"
    app_version: str = "0.1.0"
    environment: str = Field(default="development", pattern=r"^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")

    # Lookup defaults
    default_city: str = Field(default="London", min_length=1)

    # CORS
    cors_origins: list[str] = Field(default=["http://localhost:3000"])

    # Sentry
    sentry_dsn: str = ""
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)

    # Weather (OpenWeatherMap)
    # Empty key means the direct provider path can never succeed.
    openweathermap_api_key: str = ""
    openweathermap_weather_url: str = "https://api.openweathermap.org/data/2.5/weather"
    openweathermap_forecast_url: str = "https://api.openweathermap.org/data/2.5/forecast"
    weather_api_timeout_s: float = Field(default=8.0, gt=0.0)

    # Intermediary backend. Empty URL disables the proxy attempt entirely.
    intermediary_api_url: str = ""
    intermediary_timeout_s: float = Field(default=1.0, gt=0.0)

    # Request cache. Empty redis_url keeps the cache process-local.
    weather_cache_ttl_s: int = Field(default=1800, gt=0)
    redis_url: str = ""

    # Forecast reduction per role
    forecast_policy: str = Field(default="stride", pattern=r"^(stride|skip_today)$")
    backend_forecast_policy: str = Field(default="skip_today", pattern=r"^(stride|skip_today)$")

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
