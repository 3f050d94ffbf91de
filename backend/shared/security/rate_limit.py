"""
Rate limiting using slowapi, keyed by client IP.
Protects the login endpoint from credential stuffing.

Usage in a router:
    from shared.security.rate_limit import limiter

    @router.post("/token")
    @limiter.limit(LOGIN_LIMIT)
    def login(request: Request, ...):
        ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

# Create limiter instance using client IP as key
limiter = Limiter(key_func=get_remote_address)

LOGIN_LIMIT = f"{settings.login_rate_limit}/{settings.login_rate_window} seconds"


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.
    Returns a JSON response with retry information.
    """
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": "Too many requests. Try again later.",
            "retry_after": exc.detail,
        },
        headers={"Retry-After": str(settings.login_rate_window)},
    )
