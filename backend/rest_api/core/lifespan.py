"""
Startup and shutdown for the REST API.

Startup refuses to serve production with insecure settings and creates any
missing tables. Shutdown closes the connection pool.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from rest_api.models import Base
from shared.config.logging import rest_api_logger as logger
from shared.config.logging import setup_logging
from shared.config.settings import settings
from shared.infrastructure.db import engine


def check_configuration() -> None:
    """
    Log every insecure setting.

    Raises:
        RuntimeError: any were found and ENVIRONMENT is production.
    """
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Configuration error", error=problem)
    if problems and settings.environment == "production":
        raise RuntimeError("Refusing to start in production: " + "; ".join(problems))


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    check_configuration()
    Base.metadata.create_all(bind=engine)
    logger.info(
        "REST API ready",
        port=settings.rest_api_port,
        env=settings.environment,
        database=engine.url.get_backend_name(),
    )
    try:
        yield
    finally:
        engine.dispose()
        logger.info("REST API stopped")
