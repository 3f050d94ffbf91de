"""
Order Repository - tickets and joined ordered-item views.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import Row, Select, select

from rest_api.models import Check, Destination, Item, Order, OrderedItem
from .base import BaseRepository, RepositoryFilters, date_range


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters for tickets. start/end apply to sent_at."""

    user_id: int | None = None
    sent_after: datetime | None = None
    before: datetime | None = None
    is_open: bool | None = None
    start: datetime | None = None
    end: datetime | None = None


class OrderRepository(BaseRepository[Order]):
    """Repository for Order (ticket) entities."""

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        return select(Order)

    def _ordering(self) -> list[Any]:
        return [Order.sent_at, Order.id]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderFilters):
            filters = OrderFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.user_id is not None:
            query = query.where(Order.user_id == filters.user_id)
        if filters.sent_after is not None:
            query = query.where(Order.sent_at >= filters.sent_after)
        if filters.before is not None:
            query = query.where(Order.sent_at < filters.before)
        if filters.is_open is True:
            query = query.where(Order.completed_at.is_(None))
        elif filters.is_open is False:
            query = query.where(Order.completed_at.is_not(None))

        return date_range(query, Order.sent_at, filters.start, filters.end)

    def lock(self, order_id: int) -> Order | None:
        query = (
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._db.scalar(query)


@dataclass
class OrderedItemFilters(RepositoryFilters):
    """Filters for ordered items. start/end apply to the item's created_at."""

    item_id: int | None = None
    order_id: int | None = None
    check_id: int | None = None
    sent_after: datetime | None = None
    seat_num: int | None = None
    course_num: int | None = None
    is_void: bool | None = None
    start: datetime | None = None
    end: datetime | None = None


class OrderedItemRepository(BaseRepository[OrderedItem]):
    """
    Repository for OrderedItem entities.

    find_views() returns rows joined with catalog and check details:
    (OrderedItem, item name, category id, destination name, sent_at,
    table_num, customer, num_guests).
    """

    @property
    def model(self) -> type[OrderedItem]:
        return OrderedItem

    def _base_query(self) -> Select:
        return select(OrderedItem).join(Order, Order.id == OrderedItem.order_id)

    def _view_query(self) -> Select:
        return (
            select(
                OrderedItem,
                Item.name,
                Item.category_id,
                Destination.name.label("destination"),
                Order.sent_at,
                Check.table_num,
                Check.customer,
                Check.num_guests,
            )
            .join(Item, Item.id == OrderedItem.item_id)
            .join(Destination, Destination.id == Item.destination_id)
            .join(Order, Order.id == OrderedItem.order_id)
            .join(Check, Check.id == OrderedItem.check_id)
        )

    def _ordering(self) -> list[Any]:
        return [OrderedItem.course_num, OrderedItem.item_id, OrderedItem.id]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, OrderedItemFilters):
            filters = OrderedItemFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.item_id is not None:
            query = query.where(OrderedItem.item_id == filters.item_id)
        if filters.order_id is not None:
            query = query.where(OrderedItem.order_id == filters.order_id)
        if filters.check_id is not None:
            query = query.where(OrderedItem.check_id == filters.check_id)
        if filters.sent_after is not None:
            query = query.where(Order.sent_at >= filters.sent_after)
        if filters.seat_num is not None:
            query = query.where(OrderedItem.seat_num == filters.seat_num)
        if filters.course_num is not None:
            query = query.where(OrderedItem.course_num == filters.course_num)
        if filters.is_void is not None:
            query = query.where(OrderedItem.is_void.is_(filters.is_void))

        return date_range(query, OrderedItem.created_at, filters.start, filters.end)

    def find_views(self, filters: OrderedItemFilters | None = None) -> Sequence[Row]:
        filters = filters or OrderedItemFilters()
        query = self._apply_filters(self._view_query(), filters)
        query = self._ordered(query, filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).all()

    def find_view(self, ordered_item_id: int) -> Row | None:
        query = self._view_query().where(OrderedItem.id == ordered_item_id)
        return self._db.execute(query).first()

    def find_views_for_order(self, order_id: int) -> Sequence[Row]:
        """Items of one ticket, grouped the way the kitchen reads them."""
        query = (
            self._view_query()
            .where(OrderedItem.order_id == order_id)
            .order_by(Item.category_id, OrderedItem.item_id, OrderedItem.id)
        )
        return self._db.execute(query).all()

    def check_ids_for_order(self, order_id: int) -> set[int]:
        query = select(OrderedItem.check_id).where(OrderedItem.order_id == order_id).distinct()
        return set(self._db.execute(query).scalars().all())
