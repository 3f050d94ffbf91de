"""
Check router.

Role rules live here; CheckService and SettlementService enforce state.
"""

from datetime import datetime

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from rest_api.repositories import CheckFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import CheckService, SettlementService
from shared.config.constants import Role
from shared.infrastructure.db import get_db
from shared.security.auth import (
    actor_id,
    current_user_context,
    ensure_owner_or_manager,
    require_role,
)
from shared.utils.schemas import CheckCloseRequest, CheckCreate, CheckOut, CheckPatch


router = APIRouter(prefix="/api/checks", tags=["checks"])


@router.post("", response_model=CheckOut, status_code=status.HTTP_201_CREATED)
def open_check(
    body: CheckCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    """Open a check owned by the caller."""
    check = CheckService(db).open_check(
        actor_id(ctx),
        num_guests=body.num_guests,
        table_num=body.table_num,
        customer=body.customer,
    )
    return CheckOut.model_validate(check)


@router.get("", response_model=list[CheckOut])
def list_checks(
    user_id: int | None = None,
    employee: str | None = Query(default=None, description="Partial staff name"),
    table_num: int | None = None,
    customer: str | None = Query(default=None, description="Partial customer name"),
    num_guests: int | None = None,
    discount_id: int | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    printed_after: datetime | None = None,
    closed_after: datetime | None = None,
    is_open: bool | None = None,
    is_void: bool | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[CheckOut]:
    filters = CheckFilters(
        **pagination.as_filters(),
        user_id=user_id,
        employee=employee,
        table_num=table_num,
        customer=customer,
        num_guests=num_guests,
        discount_id=discount_id,
        start=start,
        end=end,
        printed_after=printed_after,
        closed_after=closed_after,
        is_open=is_open,
        is_void=is_void,
    )
    return [CheckOut.model_validate(c) for c in CheckService(db).find_checks(filters)]


@router.get("/{check_id}", response_model=CheckOut)
def get_check(
    check_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    return CheckOut.model_validate(CheckService(db).get_check(check_id))


@router.patch("/{check_id}", response_model=CheckOut)
def update_check(
    check_id: int,
    body: CheckPatch,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    """
    Partial update. Voids and discount changes need a manager; anything
    else needs the check's owner or a manager.
    """
    service = CheckService(db)
    check = service.get_check(check_id)
    ensure_owner_or_manager(ctx, check.user_id)

    changes = body.provided()
    if changes.get("is_void") is True or "discount_id" in changes:
        require_role(ctx, Role.MANAGER)

    return CheckOut.model_validate(service.update_check(check_id, body, actor_id(ctx)))


@router.post("/{check_id}/print", response_model=CheckOut)
def print_check(
    check_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    service = CheckService(db)
    ensure_owner_or_manager(ctx, service.get_check(check_id).user_id)
    return CheckOut.model_validate(service.print_check(check_id))


@router.post("/{check_id}/close", response_model=CheckOut)
def close_check(
    check_id: int,
    body: CheckCloseRequest | None = Body(default=None),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    """Close the check if its payments cover the total (400 otherwise)."""
    ensure_owner_or_manager(ctx, CheckService(db).get_check(check_id).user_id)
    closed_at = body.closed_at if body else None
    return CheckOut.model_validate(SettlementService(db).close_check(check_id, closed_at))


@router.post("/{check_id}/void", response_model=CheckOut)
def void_check(
    check_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> CheckOut:
    require_role(ctx, Role.MANAGER)
    return CheckOut.model_validate(CheckService(db).void_check(check_id, actor_id(ctx)))
