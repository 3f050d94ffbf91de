"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from rest_api.core import configure_cors, lifespan, register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.checks import router as checks_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.ordered_items import router as ordered_items_router
from rest_api.routers.modifiers import router as modifiers_router
from rest_api.routers.payments import router as payments_router
from rest_api.routers.logs import router as logs_router
from rest_api.routers.users import router as users_router
from shared.config.settings import settings
from shared.config.logging import rest_api_logger as logger
from shared.infrastructure.db import SessionLocal
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler


# Create FastAPI application
app = FastAPI(
    title="Tap'n'Table REST API",
    description="Restaurant point-of-sale backend: checks, orders, payments",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/api/health")
def health_check():
    """Liveness plus a database round trip. 503 when the database is down."""
    result = {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        result["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.error("Health check database failure", error=str(e))
        result["status"] = "degraded"
        result["database"] = "unhealthy"
        return JSONResponse(content=result, status_code=503)
    return result


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(auth_router)
app.include_router(checks_router)
app.include_router(orders_router)
app.include_router(ordered_items_router)
app.include_router(modifiers_router)
app.include_router(payments_router)
app.include_router(logs_router)
app.include_router(users_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=True,
    )
