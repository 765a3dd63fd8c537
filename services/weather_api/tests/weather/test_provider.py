"""
Tests for OpenWeatherMapClient.

All tests run without external services: httpx is either patched (AsyncMock
client) or driven through UpstreamStub's MockTransport.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from services.weather_api.tests.helpers.factories import (
    FORECAST_PATH,
    WEATHER_PATH,
    UpstreamStub,
    make_owm_current,
    make_owm_forecast,
)
from services.weather_api.weather.errors import (
    ConfigurationError,
    MalformedUpstreamData,
    ProviderHttpError,
    ProviderNetworkError,
)
from services.weather_api.weather.provider import OpenWeatherMapClient


def _mock_async_client(get: AsyncMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.get = get
    return mock_client


class TestFetchCurrent:
    @pytest.mark.asyncio
    async def test_returns_json_body(self):
        payload = make_owm_current()
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.is_error = False
        mock_response.json = MagicMock(return_value=payload)
        mock_client = _mock_async_client(AsyncMock(return_value=mock_response))

        with patch("services.weather_api.weather.provider.httpx.AsyncClient", return_value=mock_client):
            result = await OpenWeatherMapClient(api_key="test-key-123").fetch_current("Paris")

        assert result == payload
        _, kwargs = mock_client.get.call_args
        assert kwargs["params"] == {"q": "Paris", "appid": "test-key-123", "units": "metric"}

    @pytest.mark.asyncio
    async def test_sends_metric_units_and_key(self, upstream, provider):
        await provider.fetch_current("São Paulo")

        params = upstream.last_call(WEATHER_PATH).url.params
        assert params["q"] == "São Paulo"
        assert params["appid"] == "test-key-123"
        assert params["units"] == "metric"

    @pytest.mark.asyncio
    async def test_rejected_key_raises_http_error(self):
        stub = UpstreamStub()
        stub.respond(WEATHER_PATH, status=401, json={"cod": 401, "message": "Invalid API key"})
        client = OpenWeatherMapClient(api_key="bad-key", transport=stub.transport)

        with pytest.raises(ProviderHttpError) as excinfo:
            await client.fetch_current("Paris")

        assert excinfo.value.status == 401
        assert "Invalid API key" in excinfo.value.body

    @pytest.mark.asyncio
    async def test_unknown_city_raises_404(self):
        stub = UpstreamStub()  # no routes -> 404 city not found
        client = OpenWeatherMapClient(api_key="test-key-123", transport=stub.transport)

        with pytest.raises(ProviderHttpError) as excinfo:
            await client.fetch_current("Atlantis")

        assert excinfo.value.status == 404
        assert "404" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_network_failure_raises_network_error(self):
        mock_client = _mock_async_client(AsyncMock(side_effect=httpx.ConnectError("DNS failure")))

        with patch("services.weather_api.weather.provider.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ProviderNetworkError):
                await OpenWeatherMapClient(api_key="test-key-123").fetch_current("Paris")

    @pytest.mark.asyncio
    async def test_non_json_body_is_malformed(self):
        stub = UpstreamStub()
        stub.respond(WEATHER_PATH, text="<html>maintenance</html>")
        client = OpenWeatherMapClient(api_key="test-key-123", transport=stub.transport)

        with pytest.raises(MalformedUpstreamData):
            await client.fetch_current("Paris")

    @pytest.mark.asyncio
    async def test_no_api_key_raises_without_call(self):
        """Missing key is a configuration error, not a request to the provider."""
        service = OpenWeatherMapClient(api_key="")

        with patch("httpx.AsyncClient") as mock_client_cls:
            with pytest.raises(ConfigurationError):
                await service.fetch_current("Paris")
            mock_client_cls.assert_not_called()

        assert service.configured is False


class TestFetchForecast:
    @pytest.mark.asyncio
    async def test_returns_forecast_body(self, upstream, provider):
        result = await provider.fetch_forecast("Paris")
        assert len(result["list"]) == 40
        assert upstream.last_call(FORECAST_PATH).url.params["units"] == "metric"

    @pytest.mark.asyncio
    async def test_server_error_raises_http_error(self):
        stub = UpstreamStub()
        stub.respond(FORECAST_PATH, status=503, text="Service Unavailable")
        client = OpenWeatherMapClient(api_key="test-key-123", transport=stub.transport)

        with pytest.raises(ProviderHttpError) as excinfo:
            await client.fetch_forecast("Paris")
        assert excinfo.value.status == 503


class TestFetchAll:
    @pytest.mark.asyncio
    async def test_both_bodies_returned(self, upstream, provider):
        current, forecast = await provider.fetch_all("Paris")

        assert current["name"] == "Paris"
        assert forecast["cnt"] == 40
        assert upstream.calls_to(WEATHER_PATH) == 1
        assert upstream.calls_to(FORECAST_PATH) == 1

    @pytest.mark.asyncio
    async def test_forecast_failure_fails_whole_call(self):
        stub = UpstreamStub()
        stub.respond(WEATHER_PATH, json=make_owm_current())
        stub.respond(FORECAST_PATH, status=500, text="boom")
        client = OpenWeatherMapClient(api_key="test-key-123", transport=stub.transport)

        with pytest.raises(ProviderHttpError):
            await client.fetch_all("Paris")

    @pytest.mark.asyncio
    async def test_failure_cancels_slow_sibling(self):
        stub = UpstreamStub()
        stub.respond(WEATHER_PATH, json=make_owm_current(), delay=5.0)
        stub.respond(FORECAST_PATH, exc=httpx.ConnectError)
        client = OpenWeatherMapClient(api_key="test-key-123", transport=stub.transport)

        with pytest.raises(ProviderNetworkError):
            await client.fetch_all("Paris")

    @pytest.mark.asyncio
    async def test_no_api_key(self):
        stub = UpstreamStub()
        stub.respond(WEATHER_PATH, json=make_owm_current())
        stub.respond(FORECAST_PATH, json=make_owm_forecast())
        client = OpenWeatherMapClient(api_key="", transport=stub.transport)

        with pytest.raises(ConfigurationError):
            await client.fetch_all("Paris")
        assert stub.calls == []
