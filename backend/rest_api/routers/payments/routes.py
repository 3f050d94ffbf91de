"""
Payment router.

Recording tenders and declaring tips is open to all staff. Voiding a
payment and the close-out totals need a manager.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.repositories import PaymentFilters, TotalsFilters
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import PaymentService
from shared.config.constants import Role, TenderType
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_role
from shared.utils.schemas import PaymentCreate, PaymentOut, PaymentPatch, PaymentTotalOut


router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def record_payment(
    body: PaymentCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> PaymentOut:
    return PaymentOut.model_validate(PaymentService(db).record_payment(body))


@router.get("", response_model=list[PaymentOut])
def list_payments(
    check_id: int | None = None,
    user_id: int | None = None,
    type: TenderType | None = None,
    is_void: bool | None = None,
    created_after: datetime | None = None,
    printed_after: datetime | None = None,
    closed_after: datetime | None = None,
    is_open: bool | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[PaymentOut]:
    filters = PaymentFilters(
        **pagination.as_filters(),
        check_id=check_id,
        user_id=user_id,
        type=type,
        is_void=is_void,
        created_after=created_after,
        printed_after=printed_after,
        closed_after=closed_after,
        is_open=is_open,
    )
    return [PaymentOut.model_validate(p) for p in PaymentService(db).find_payments(filters)]


@router.get("/totals", response_model=list[PaymentTotalOut])
def payment_totals(
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[PaymentTotalOut]:
    """Close-out totals by tender type, split by void flag."""
    require_role(ctx, Role.MANAGER)
    return PaymentService(db).get_totals(TotalsFilters(start=start, end=end, user_id=user_id))


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> PaymentOut:
    return PaymentOut.model_validate(PaymentService(db).get_payment(payment_id))


@router.patch("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: int,
    body: PaymentPatch,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> PaymentOut:
    """Declare a tip (any staff) or void the payment (manager)."""
    if "is_void" in body.provided():
        require_role(ctx, Role.MANAGER)
    return PaymentOut.model_validate(PaymentService(db).update_payment(payment_id, body))
