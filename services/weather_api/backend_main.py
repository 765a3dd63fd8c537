"""
Intermediary backend: the secondary weather service the frontend proxies to.

Entrypoint: uvicorn services.weather_api.backend_main:app --host 0.0.0.0 --port 8001

Serves GET /api/weather with its own independent 30-minute cache and the
skip_today forecast policy (BACKEND_FORECAST_POLICY). Point the frontend's
INTERMEDIARY_API_URL at this service.
"""

from services.weather_api.main import ROLE_INTERMEDIARY, create_app

app = create_app(ROLE_INTERMEDIARY)
