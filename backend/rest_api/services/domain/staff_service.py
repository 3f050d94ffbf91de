"""
Staff Domain Service.

Staff accounts and their role levels. Accounts are deactivated, never
deleted: checks, payments and log entries keep pointing at them.

Business rules:
- Usernames are unique
- Nobody grants a role above their own, or edits someone who outranks them
- Nobody deactivates or demotes their own account
"""

from typing import Any, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import User
from rest_api.repositories import UserFilters, UserRepository
from shared.config.constants import ROLE_RANK, ErrorMessages, Limits, Role, at_least
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.security.password import hash_password
from shared.utils.exceptions import ForbiddenError, NotFoundError, ValidationError
from shared.utils.schemas import StaffCreate, StaffPatch
from shared.utils.validators import clean_text

logger = get_logger(__name__)


def _required_name(value: str | None, field: str) -> str:
    name = clean_text(value, Limits.MAX_NAME_LENGTH)
    if name is None:
        raise ValidationError(f"{field} cannot be blank", field=field)
    return name


class StaffService:
    """Domain service for staff accounts."""

    def __init__(self, db: Session):
        self._db = db
        self._repo = UserRepository(db)

    # =========================================================================
    # Query Methods
    # =========================================================================

    def find_staff(self, filters: UserFilters | None = None) -> Sequence[User]:
        return self._repo.find_all(filters)

    def get_staff(self, user_id: int) -> User:
        user = self._repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    # =========================================================================
    # Write Methods
    # =========================================================================

    def create_staff(self, data: StaffCreate, actor_id: int, actor_role: Role) -> User:
        """
        Create a staff account.

        Raises:
            ForbiddenError: the role ranks above the caller's.
            ValidationError: blank name or username already taken.
        """
        self._ensure_can_grant(actor_role, data.role, actor_id)

        username = _required_name(data.username, "username")
        if self._repo.find_by_username(username) is not None:
            raise ValidationError(f"Username '{username}' is already taken", field="username")

        user = User(
            username=username,
            password_hash=hash_password(data.password),
            first_name=_required_name(data.first_name, "first_name"),
            last_name=_required_name(data.last_name, "last_name"),
            display_name=clean_text(data.display_name, Limits.MAX_NAME_LENGTH),
            role=data.role,
        )
        with transaction(self._db):
            self._db.add(user)
            try:
                self._db.flush()
            except IntegrityError as exc:
                raise ValidationError(
                    f"Username '{username}' is already taken", field="username"
                ) from exc
        self._db.refresh(user)

        logger.info("Staff created", staff_id=user.id, role=user.role.value, created_by=actor_id)
        return user

    def update_staff(
        self, user_id: int, patch: StaffPatch, actor_id: int, actor_role: Role
    ) -> User:
        changes = patch.provided()
        if not changes:
            raise ValidationError(ErrorMessages.EMPTY_PATCH, staff_id=user_id)
        for field in ("first_name", "last_name", "role", "is_active", "password"):
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be cleared", staff_id=user_id)

        user = self.get_staff(user_id)
        self._ensure_can_manage(user, actor_id, actor_role)
        if "role" in changes:
            self._ensure_can_grant(actor_role, changes["role"], actor_id)
            if user.id == actor_id and ROLE_RANK[changes["role"]] < ROLE_RANK[user.role]:
                raise ValidationError("You cannot lower your own role", staff_id=user_id)
        if changes.get("is_active") is False and user.id == actor_id:
            raise ValidationError("You cannot deactivate your own account", staff_id=user_id)

        with transaction(self._db):
            self._apply(user, changes)
        self._db.refresh(user)

        logger.info(
            "Staff updated",
            staff_id=user_id,
            fields=sorted(changes),
            updated_by=actor_id,
        )
        return user

    def deactivate_staff(self, user_id: int, actor_id: int, actor_role: Role) -> User:
        """Disable login for an account. Deactivating twice is a no-op."""
        user = self.get_staff(user_id)
        if not user.is_active:
            return user
        return self.update_staff(user_id, StaffPatch(is_active=False), actor_id, actor_role)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _apply(self, user: User, changes: dict[str, Any]) -> None:
        for field in ("first_name", "last_name"):
            if field in changes:
                setattr(user, field, _required_name(changes[field], field))
        if "display_name" in changes:
            user.display_name = clean_text(changes["display_name"], Limits.MAX_NAME_LENGTH)
        if "role" in changes:
            user.role = changes["role"]
        if "is_active" in changes:
            user.is_active = changes["is_active"]
        if "password" in changes:
            user.password_hash = hash_password(changes["password"])

    def _ensure_can_grant(self, actor_role: Role, role: Role, actor_id: int) -> None:
        if not at_least(actor_role, role):
            raise ForbiddenError(f"grant the {role.value} role", user_id=actor_id)

    def _ensure_can_manage(self, user: User, actor_id: int, actor_role: Role) -> None:
        if user.id != actor_id and not at_least(actor_role, user.role):
            raise ForbiddenError("manage a higher-ranked staff member", user_id=actor_id, staff_id=user.id)
