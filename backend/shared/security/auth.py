"""
Authentication and authorization utilities for staff JWTs.

Tokens carry the user id (sub), username and role. Route handlers take
`ctx = Depends(current_user_context)` and then call require_role() or
ensure_owner_or_manager() before delegating to a service.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Header

from shared.config.constants import ErrorMessages, Role, at_least
from shared.config.logging import get_logger
from shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET, settings
from shared.utils.exceptions import ForbiddenError, InsufficientRoleError, UnauthorizedError

logger = get_logger(__name__)


# =============================================================================
# JWT Functions
# =============================================================================


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = "access",
) -> str:
    """
    Sign a JWT with the given claims.

    Args:
        payload: Claims to include (sub, username, role).
        ttl_seconds: Token lifetime in seconds. Defaults to access token expiry.
        token_type: Type of token.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def sign_user_token(user_id: int, username: str, role: Role | str) -> str:
    """Access token for a staff member."""
    return sign_jwt({"sub": str(user_id), "username": username, "role": Role(role).value})


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a staff JWT.

    Raises:
        UnauthorizedError: If the token is invalid, expired or missing claims.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(ErrorMessages.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        # Generic message to the client, real reason in the log
        logger.warning("JWT validation failed", error=str(e))
        raise UnauthorizedError(ErrorMessages.INVALID_TOKEN)

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token: invalid type claim")

    try:
        int(payload["sub"])
        Role(payload["role"])
    except (KeyError, ValueError, TypeError):
        raise UnauthorizedError("Invalid token: malformed claims")

    return payload


# =============================================================================
# FastAPI dependencies and guards
# =============================================================================


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract the token from an Authorization header.

    Raises:
        UnauthorizedError: If header is missing or malformed.
    """
    if not authorization:
        raise UnauthorizedError(ErrorMessages.NOT_AUTHENTICATED)
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid authorization header")
    return token.strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/checks")
        def list_checks(ctx = Depends(current_user_context)):
            user_id = actor_id(ctx)
            ...

    Returns:
        Dict with: sub (user id as str), username, role
    """
    token = get_bearer_token(authorization)
    return verify_jwt(token)


def actor_id(ctx: dict[str, Any]) -> int:
    """User id of the caller."""
    return int(ctx["sub"])


def actor_role(ctx: dict[str, Any]) -> Role:
    """Role of the caller."""
    return Role(ctx["role"])


def require_role(ctx: dict[str, Any], minimum: Role) -> None:
    """
    Verify that the caller ranks at least `minimum`.

    Raises:
        InsufficientRoleError: If the caller's role ranks lower.
    """
    if not at_least(ctx.get("role", ""), minimum):
        raise InsufficientRoleError(minimum.value, user_id=ctx.get("sub"), role=ctx.get("role"))


def is_manager(ctx: dict[str, Any]) -> bool:
    return at_least(ctx.get("role", ""), Role.MANAGER)


def ensure_owner_or_manager(ctx: dict[str, Any], owner_id: int) -> None:
    """
    Allow the owning staff member or any manager.

    Raises:
        ForbiddenError: If the caller is neither.
    """
    if actor_id(ctx) == owner_id or is_manager(ctx):
        return
    raise ForbiddenError("modify another staff member's check", user_id=ctx.get("sub"), owner_id=owner_id)


def ensure_self_or_manager(ctx: dict[str, Any], user_id: int) -> None:
    """
    Allow a staff member to read their own account, or any manager.

    Raises:
        ForbiddenError: If the caller is neither.
    """
    if actor_id(ctx) == user_id or is_manager(ctx):
        return
    raise ForbiddenError("view another staff member's account", user_id=ctx.get("sub"), staff_id=user_id)
