"""
CORS for the till and kitchen-screen front ends.

ALLOWED_ORIGINS (comma-separated) replaces the local dev server origins.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings
from shared.infrastructure.correlation import REQUEST_ID_HEADER

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]


def get_cors_origins() -> list[str]:
    configured = [origin.strip() for origin in settings.allowed_origins.split(",")]
    return [origin for origin in configured if origin] or DEFAULT_CORS_ORIGINS


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
        # No preflight caching in development
        max_age=0 if settings.environment == "development" else 600,
    )
