"""
Payment Repository - payment listings and tender totals.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Row, Select, func, select

from rest_api.models import Check, Payment
from shared.config.constants import TenderType
from .base import BaseRepository, RepositoryFilters, date_range


@dataclass
class PaymentFilters(RepositoryFilters):
    """
    Filters for payments. Date filters apply to the owning check.
    is_open=True means the tip has not been declared yet.
    """

    check_id: int | None = None
    user_id: int | None = None
    type: TenderType | None = None
    is_void: bool | None = None
    created_after: datetime | None = None
    printed_after: datetime | None = None
    closed_after: datetime | None = None
    is_open: bool | None = None


@dataclass
class TotalsFilters(RepositoryFilters):
    """Range for close-out totals; start/end apply to the check's created_at."""

    start: datetime | None = None
    end: datetime | None = None
    user_id: int | None = None


class PaymentRepository(BaseRepository[Payment]):
    """Repository for Payment entities."""

    @property
    def model(self) -> type[Payment]:
        return Payment

    def _base_query(self) -> Select:
        return select(Payment).join(Check, Check.id == Payment.check_id)

    def _ordering(self) -> list[Any]:
        return [Payment.check_id, Payment.id]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, PaymentFilters):
            filters = PaymentFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.check_id is not None:
            query = query.where(Payment.check_id == filters.check_id)
        if filters.user_id is not None:
            query = query.where(Check.user_id == filters.user_id)
        if filters.type is not None:
            query = query.where(Payment.type == filters.type)
        if filters.is_void is not None:
            query = query.where(Payment.is_void.is_(filters.is_void))
        if filters.created_after is not None:
            query = query.where(Check.created_at >= filters.created_after)
        if filters.printed_after is not None:
            query = query.where(Check.printed_at >= filters.printed_after)
        if filters.closed_after is not None:
            query = query.where(Check.closed_at >= filters.closed_after)
        if filters.is_open is True:
            query = query.where(Payment.tip_cents.is_(None))
        elif filters.is_open is False:
            query = query.where(Payment.tip_cents.is_not(None))

        return query

    def covered_cents(self, check_id: int) -> int:
        """Sum of non-void payment subtotals for a check."""
        query = select(func.coalesce(func.sum(Payment.subtotal_cents), 0)).where(
            Payment.check_id == check_id,
            Payment.is_void.is_(False),
        )
        return int(self._db.scalar(query) or 0)

    def totals(self, filters: TotalsFilters | None = None) -> Sequence[Row]:
        """
        Tender totals grouped by (type, is_void). Void checks are excluded:
        their payments are not revenue.
        """
        filters = filters or TotalsFilters()
        query = (
            select(
                Payment.type.label("payment_type"),
                Payment.is_void.label("is_void"),
                func.coalesce(func.sum(Payment.tip_cents), 0).label("tip_sum_cents"),
                func.coalesce(func.sum(Payment.subtotal_cents), 0).label("subtotal_sum_cents"),
                func.count(Payment.id).label("count"),
            )
            .join(Check, Check.id == Payment.check_id)
            .where(Check.is_void.is_(False))
        )
        if filters.user_id is not None:
            query = query.where(Check.user_id == filters.user_id)
        query = date_range(query, Check.created_at, filters.start, filters.end)
        query = query.group_by(Payment.type, Payment.is_void).order_by(Payment.type, Payment.is_void)
        return self._db.execute(query).all()
