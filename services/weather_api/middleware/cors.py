"""
CORS middleware configuration.
The display layer calls GET /api/weather from the browser; only its origins are allowed.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.weather_api.config import settings


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Cache-Control", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
