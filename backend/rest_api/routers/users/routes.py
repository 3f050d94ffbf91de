"""
Staff router.

Managing accounts needs a manager. Any staff member may read their own
account; StaffService enforces rank rules between caller and target.
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from rest_api.repositories import UserFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import StaffService
from shared.config.constants import Role
from shared.infrastructure.db import get_db
from shared.security.auth import (
    actor_id,
    actor_role,
    current_user_context,
    ensure_self_or_manager,
    require_role,
)
from shared.utils.schemas import StaffCreate, StaffOut, StaffPatch


router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=StaffOut, status_code=status.HTTP_201_CREATED)
def create_staff(
    body: StaffCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> StaffOut:
    require_role(ctx, Role.MANAGER)
    user = StaffService(db).create_staff(body, actor_id(ctx), actor_role(ctx))
    return StaffOut.model_validate(user)


@router.get("", response_model=list[StaffOut])
def list_staff(
    role: Role | None = None,
    is_active: bool = Query(default=True, description="Active (default) or deactivated staff"),
    name: str | None = Query(default=None, description="Partial username or name"),
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[StaffOut]:
    require_role(ctx, Role.MANAGER)
    filters = UserFilters(**pagination.as_filters(), role=role, is_active=is_active, name=name)
    return [StaffOut.model_validate(u) for u in StaffService(db).find_staff(filters)]


@router.get("/{user_id}", response_model=StaffOut)
def get_staff(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> StaffOut:
    ensure_self_or_manager(ctx, user_id)
    return StaffOut.model_validate(StaffService(db).get_staff(user_id))


@router.patch("/{user_id}", response_model=StaffOut)
def update_staff(
    user_id: int,
    body: StaffPatch,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> StaffOut:
    """Partial update: names, password, role level or active flag."""
    require_role(ctx, Role.MANAGER)
    user = StaffService(db).update_staff(user_id, body, actor_id(ctx), actor_role(ctx))
    return StaffOut.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_staff(
    user_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> Response:
    """Deactivate the account. History that references it is kept."""
    require_role(ctx, Role.MANAGER)
    StaffService(db).deactivate_staff(user_id, actor_id(ctx), actor_role(ctx))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
