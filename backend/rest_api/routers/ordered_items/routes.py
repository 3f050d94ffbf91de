"""
Ordered item router.

Line-level edits for servers, and the complete/deliver actions used by
the kitchen and expo screens.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.repositories import OrderedItemFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import OrderService
from shared.config.constants import Role
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context, require_role
from shared.utils.schemas import (
    OrderedItemCreate,
    OrderedItemOut,
    OrderedItemPatch,
    OrderedItemView,
)


router = APIRouter(prefix="/api/ordered-items", tags=["ordered-items"])


@router.post("", response_model=OrderedItemOut, status_code=status.HTTP_201_CREATED)
def create_ordered_item(
    body: OrderedItemCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemOut:
    return OrderedItemOut.model_validate(OrderService(db).create_ordered_item(body))


@router.get("", response_model=list[OrderedItemView])
def list_ordered_items(
    item_id: int | None = None,
    order_id: int | None = None,
    check_id: int | None = None,
    sent_after: datetime | None = None,
    seat_num: int | None = None,
    course_num: int | None = None,
    is_void: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[OrderedItemView]:
    filters = OrderedItemFilters(
        **pagination.as_filters(),
        item_id=item_id,
        order_id=order_id,
        check_id=check_id,
        sent_after=sent_after,
        seat_num=seat_num,
        course_num=course_num,
        is_void=is_void,
        start=start,
        end=end,
    )
    return OrderService(db).find_ordered_items(filters)


@router.get("/{ordered_item_id}", response_model=OrderedItemView)
def get_ordered_item(
    ordered_item_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemView:
    return OrderService(db).get_ordered_item(ordered_item_id)


@router.patch("/{ordered_item_id}", response_model=OrderedItemOut)
def update_ordered_item(
    ordered_item_id: int,
    body: OrderedItemPatch,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemOut:
    """Seat, course and note edits for anyone; voids and discounts need a manager."""
    changes = body.provided()
    if "is_void" in changes or "item_discount_id" in changes:
        require_role(ctx, Role.MANAGER)

    ordered_item = OrderService(db).update_ordered_item(ordered_item_id, body, actor_id(ctx))
    return OrderedItemOut.model_validate(ordered_item)


@router.post("/{ordered_item_id}/complete", response_model=OrderedItemOut)
def complete_ordered_item(
    ordered_item_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemOut:
    require_role(ctx, Role.COOK)
    ordered_item = OrderService(db).complete_ordered_item(ordered_item_id, actor_id(ctx))
    return OrderedItemOut.model_validate(ordered_item)


@router.post("/{ordered_item_id}/deliver", response_model=OrderedItemOut)
def deliver_ordered_item(
    ordered_item_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemOut:
    return OrderedItemOut.model_validate(OrderService(db).deliver_ordered_item(ordered_item_id))
