"""
Check Repository - filtered check listings.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, or_, select

from rest_api.models import Check, User
from shared.utils.validators import escape_like_pattern, sanitize_search_term
from .base import BaseRepository, RepositoryFilters, date_range


@dataclass
class CheckFilters(RepositoryFilters):
    """Filters specific to checks. start/end apply to created_at."""

    user_id: int | None = None
    employee: str | None = None
    table_num: int | None = None
    customer: str | None = None
    num_guests: int | None = None
    discount_id: int | None = None
    start: datetime | None = None
    end: datetime | None = None
    printed_after: datetime | None = None
    closed_after: datetime | None = None
    is_open: bool | None = None
    is_void: bool | None = None


class CheckRepository(BaseRepository[Check]):
    """Repository for Check entities."""

    @property
    def model(self) -> type[Check]:
        return Check

    def _base_query(self) -> Select:
        return select(Check)

    def _ordering(self) -> list[Any]:
        return [Check.created_at, Check.id]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, CheckFilters):
            filters = CheckFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.user_id is not None:
            query = query.where(Check.user_id == filters.user_id)

        employee = sanitize_search_term(filters.employee)
        if employee:
            pattern = f"%{escape_like_pattern(employee)}%"
            query = query.join(User, User.id == Check.user_id).where(
                or_(
                    User.display_name.ilike(pattern, escape="\\"),
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                )
            )

        if filters.table_num is not None:
            query = query.where(Check.table_num == filters.table_num)

        customer = sanitize_search_term(filters.customer)
        if customer:
            pattern = f"%{escape_like_pattern(customer)}%"
            query = query.where(Check.customer.ilike(pattern, escape="\\"))

        if filters.num_guests is not None:
            query = query.where(Check.num_guests == filters.num_guests)

        if filters.discount_id is not None:
            query = query.where(Check.discount_id == filters.discount_id)

        query = date_range(query, Check.created_at, filters.start, filters.end)

        if filters.printed_after is not None:
            query = query.where(Check.printed_at >= filters.printed_after)

        if filters.closed_after is not None:
            query = query.where(Check.closed_at >= filters.closed_after)

        if filters.is_open is True:
            query = query.where(Check.closed_at.is_(None))
        elif filters.is_open is False:
            query = query.where(Check.closed_at.is_not(None))

        if filters.is_void is not None:
            query = query.where(Check.is_void.is_(filters.is_void))

        return query

    def lock(self, check_id: int) -> Check | None:
        """
        Re-read the check under a row lock for the rest of the transaction.

        populate_existing overwrites any stale copy already in the session.
        """
        query = (
            select(Check)
            .where(Check.id == check_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._db.scalar(query)
