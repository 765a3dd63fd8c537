"""
Sentry instrumentation for the weather API.
Server-side only. Strips sensitive headers and the provider API key from events.
"""

import re
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from services.weather_api.config import settings

SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}
SENSITIVE_PARAMS = ("appid",)
_PARAM_RE = re.compile(r"\b(" + "|".join(SENSITIVE_PARAMS) + r")=[^&\s]*")


def _filter_headers(headers: Any) -> None:
    if isinstance(headers, dict):
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[FILTERED]"


def _filter_value(value: Any) -> Any:
    # OpenWeatherMap takes its key as ?appid=...; httpx breadcrumbs carry it in http.query
    if not isinstance(value, str):
        return value
    value = _PARAM_RE.sub(r"\1=[FILTERED]", value)
    if settings.openweathermap_api_key:
        value = value.replace(settings.openweathermap_api_key, "[FILTERED]")
    return value


def _strip_sensitive_data(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any] | None:
    """before_send hook: strip auth headers, cookies and the provider key."""
    if "breadcrumbs" in event:
        for breadcrumb in event["breadcrumbs"].get("values", []):
            if "message" in breadcrumb:
                breadcrumb["message"] = _filter_value(breadcrumb["message"])
            data = breadcrumb.get("data", {})
            if isinstance(data, dict):
                _filter_headers(data.get("headers", {}))
                for key, value in list(data.items()):
                    if key in SENSITIVE_PARAMS:
                        data[key] = "[FILTERED]"
                    else:
                        data[key] = _filter_value(value)
    request = event.get("request", {})
    if isinstance(request, dict):
        _filter_headers(request.get("headers", {}))
    return event


def setup_sentry() -> None:
    if not settings.sentry_dsn:
        return

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"{settings.app_name}@{settings.app_version}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
        before_send=_strip_sensitive_data,
        integrations=[
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        send_default_pii=False,
    )
