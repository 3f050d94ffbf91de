"""
Centralized HTTP exceptions for consistent error handling.

Every exception logs itself with structured context when raised, so
services raise and never log-then-raise.

Usage:
    from shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Check", check_id)
    raise ValidationError("Item 99 doesn't exist", item_id=99)
    raise PaymentIncompleteError(check_id, total_cents=2500, covered_cents=1000)
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class so the response format
    and log line are consistent.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 Unauthorized / 403 Forbidden
# =============================================================================


class UnauthorizedError(AppException):
    """Missing, malformed or expired credentials (401)."""

    def __init__(self, detail: str = "Not authenticated", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="info",
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("edit another server's check", user_id=user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not authorized to {action}" if action else "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


class InsufficientRoleError(ForbiddenError):
    """User's role ranks below the minimum for the action."""

    def __init__(self, minimum_role: str, **log_context: Any):
        super().__init__(
            f"perform this action (requires {minimum_role} or above)",
            minimum_role=minimum_role,
            **log_context,
        )


# =============================================================================
# 404 Not Found
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Check", 123)
        raise NotFoundError("Item mod group", item_id=4, mod_group_id=2)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 400 Bad Request
# =============================================================================


class ValidationError(AppException):
    """
    Input or domain-rule violation (400).

    Usage:
        raise ValidationError("num_guests must be positive", field="num_guests")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class MissingReferenceError(ValidationError):
    """A referenced row does not exist ("Mod 42 doesn't exist")."""

    def __init__(self, entity: str, entity_id: int, **log_context: Any):
        super().__init__(
            f"{entity} {entity_id} doesn't exist",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class InvalidStateError(ValidationError):
    """Entity is in an invalid state for the operation."""

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        reason: str | None = None,
        **log_context: Any,
    ):
        if reason:
            detail = f"{entity} is {current_state}: {reason}"
        elif expected_states:
            detail = f"{entity} is {current_state}, expected one of: {', '.join(expected_states)}"
        else:
            detail = f"{entity} cannot be {current_state} for this operation"

        super().__init__(detail, entity=entity, current_state=current_state, **log_context)


class PaymentIncompleteError(ValidationError):
    """Non-void payments do not cover the check total."""

    def __init__(self, check_id: int, total_cents: int, covered_cents: int, **log_context: Any):
        detail = (
            f"Check {check_id} is not fully paid: "
            f"total {total_cents} cents, covered {covered_cents} cents"
        )
        super().__init__(
            detail,
            check_id=check_id,
            total_cents=total_cents,
            covered_cents=covered_cents,
            **log_context,
        )


# =============================================================================
# 409 Conflict
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409). Callers may re-read and retry.

    Usage:
        raise ConflictError("Check 4 was closed by another request")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class AlreadyClosedError(ConflictError):
    """Check is already closed."""

    def __init__(self, check_id: int, **log_context: Any):
        super().__init__(f"Check {check_id} is already closed", check_id=check_id, **log_context)


class DuplicateAttachmentError(ConflictError):
    """Association pair already exists."""

    def __init__(self, relation: str, left_id: int, right_id: int, **log_context: Any):
        super().__init__(
            f"{relation} ({left_id}, {right_id}) already exists",
            relation=relation,
            left_id=left_id,
            right_id=right_id,
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """Internal server error (500)."""

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error during {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
