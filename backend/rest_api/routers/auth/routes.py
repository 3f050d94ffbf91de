"""
Authentication router.
Handles staff login and the current-user lookup.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import User
from shared.config.constants import ErrorMessages
from shared.config.logging import audit_auth_event, auth_logger as logger, mask_username
from shared.config.settings import settings
from shared.infrastructure.db import get_db, safe_commit
from shared.security.auth import actor_id, current_user_context, sign_user_token
from shared.security.password import hash_password, needs_rehash, verify_password
from shared.security.rate_limit import LOGIN_LIMIT, limiter
from shared.utils.exceptions import NotFoundError, UnauthorizedError
from shared.utils.schemas import LoginRequest, LoginResponse, UserInfo


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/token", response_model=LoginResponse)
@limiter.limit(LOGIN_LIMIT)
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Authenticate a staff member and return an access token.

    The token contains:
    - sub: user ID
    - username
    - role: the staff member's single role level

    Rate limited per client IP.
    """
    client_ip = request.client.host if request.client else None

    user = db.scalar(
        select(User).where(User.username == body.username, User.is_active.is_(True))
    )

    if not user or not verify_password(body.password, user.password_hash):
        audit_auth_event(
            "LOGIN_FAILED",
            user_id=user.id if user else None,
            username=body.username,
            success=False,
            reason="user not found" if not user else "invalid password",
            ip_address=client_ip,
        )
        raise UnauthorizedError(ErrorMessages.INVALID_CREDENTIALS, username=mask_username(body.username))

    # Rehash passwords stored with an outdated bcrypt cost
    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(body.password)
        safe_commit(db)

    access_token = sign_user_token(user.id, user.username, user.role)
    audit_auth_event("LOGIN", user_id=user.id, username=user.username, ip_address=client_ip, role=user.role.value)

    return LoginResponse(
        access_token=access_token,
        token_type="Bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserInfo.model_validate(user),
    )


@router.get("/me", response_model=UserInfo)
def me(db: Session = Depends(get_db), ctx: dict = Depends(current_user_context)) -> UserInfo:
    """Return the authenticated staff member."""
    user = db.get(User, actor_id(ctx))
    if user is None or not user.is_active:
        logger.warning("Token for missing or inactive user", user_id=ctx.get("sub"))
        raise NotFoundError("User", ctx.get("sub"))
    return UserInfo.model_validate(user)
