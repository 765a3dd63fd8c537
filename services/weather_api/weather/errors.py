"""
Failure taxonomy for the weather lookup pipeline.

Only UpstreamUnavailable ever leaves WeatherResolver.resolve(); everything
else is either wrapped into it (direct path) or absorbed (intermediary path).
"""

from __future__ import annotations


class WeatherError(Exception):
    """Base class for every weather pipeline failure."""


class ConfigurationError(WeatherError):
    """Required configuration (the provider API key) is missing."""


class ProviderError(WeatherError):
    """The upstream weather provider could not be used for this request."""


class ProviderHttpError(ProviderError):
    def __init__(self, status: int, body: str, endpoint: str = "") -> None:
        self.status = status
        self.body = body
        self.endpoint = endpoint
        label = f"OpenWeather {endpoint} API error" if endpoint else "OpenWeather API error"
        super().__init__(f"{label}: {status} {body}".rstrip())


class ProviderNetworkError(ProviderError):
    """Transport failure (DNS, connect, read timeout) talking to the provider."""


class IntermediaryUnavailable(WeatherError):
    """The optional intermediary backend did not produce usable data."""


class MalformedUpstreamData(WeatherError):
    """An upstream body is missing required identity fields or is not JSON."""


class UpstreamUnavailable(WeatherError):
    """Neither the intermediary nor the direct provider path produced data."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(str(cause) or cause.__class__.__name__)
