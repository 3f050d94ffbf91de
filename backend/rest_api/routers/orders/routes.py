"""
Order (ticket) router.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.repositories import OrderFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import OrderService
from shared.infrastructure.db import get_db
from shared.security.auth import actor_id, current_user_context
from shared.utils.schemas import FireCourseRequest, OrderCreate, OrderOut, OrderWithItemsOut


router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOut:
    """
    Send an order.

    With items, the ticket and every item are written together against
    `check_id`; an invalid item rejects the whole send. Without items an
    empty ticket is created for item-by-item entry.
    """
    service = OrderService(db)
    if body.items:
        order = service.send_order(actor_id(ctx), body.check_id, body.items)
    else:
        order = service.create_order(actor_id(ctx))
    return OrderOut.model_validate(order)


@router.get("", response_model=list[OrderOut])
def list_orders(
    user_id: int | None = None,
    sent_after: datetime | None = None,
    before: datetime | None = None,
    is_open: bool | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[OrderOut]:
    filters = OrderFilters(
        **pagination.as_filters(),
        user_id=user_id,
        sent_after=sent_after,
        before=before,
        is_open=is_open,
        start=start,
        end=end,
    )
    return [OrderOut.model_validate(o) for o in OrderService(db).find_orders(filters)]


@router.get("/{order_id}", response_model=OrderWithItemsOut)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderWithItemsOut:
    return OrderService(db).get_order_with_items(order_id)


@router.post("/{order_id}/fire", response_model=OrderOut)
def fire_course(
    order_id: int,
    body: FireCourseRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderOut:
    order = OrderService(db).fire_course(order_id, body.course, body.fired_at)
    return OrderOut.model_validate(order)
