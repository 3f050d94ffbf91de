"""
Security module: authentication, password hashing, role checks, rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    sign_user_token,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    actor_id,
    actor_role,
    require_role,
    is_manager,
    ensure_owner_or_manager,
)
from shared.security.password import hash_password, verify_password, needs_rehash
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
    LOGIN_LIMIT,
)

__all__ = [
    # auth
    "sign_jwt",
    "sign_user_token",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "actor_id",
    "actor_role",
    "require_role",
    "is_manager",
    "ensure_owner_or_manager",
    # password
    "hash_password",
    "verify_password",
    "needs_rehash",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
    "LOGIN_LIMIT",
]
