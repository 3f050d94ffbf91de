"""
Order Domain Service.

Tickets (orders) and the ordered items they carry to the kitchen and bar.
Every write that changes what a check owes locks the check row first and
recomputes its totals before commit.
"""

from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import Row, select
from sqlalchemy.orm import Session

from rest_api.models import Check, Discount, Item, Order, OrderedItem, User
from rest_api.repositories import (
    OrderFilters,
    OrderRepository,
    OrderedItemFilters,
    OrderedItemRepository,
)
from shared.config.constants import FIREABLE_COURSES, ErrorMessages, Limits, LogEvent
from shared.config.logging import order_logger as logger
from shared.infrastructure.db import transaction
from shared.utils.clock import as_utc, utcnow
from shared.utils.exceptions import (
    InvalidStateError,
    MissingReferenceError,
    NotFoundError,
    ValidationError,
)
from shared.utils.schemas import (
    OrderLine,
    OrderOut,
    OrderWithItemsOut,
    OrderedItemCreate,
    OrderedItemOut,
    OrderedItemPatch,
    OrderedItemView,
)
from shared.utils.validators import clean_text
from .activity_log_service import ActivityLogService
from .check_service import CheckService
from .check_totals import recalculate


def to_view(row: Row) -> OrderedItemView:
    """Build the joined API view from an OrderedItemRepository row."""
    ordered_item = row[0]
    base = OrderedItemOut.model_validate(ordered_item).model_dump()
    return OrderedItemView(
        **base,
        name=row.name,
        category_id=row.category_id,
        destination=row.destination,
        sent_at=row.sent_at,
        table_num=row.table_num,
        customer=row.customer,
        num_guests=row.num_guests,
    )


class OrderService:
    """Domain service for orders and ordered items."""

    def __init__(self, db: Session):
        self._db = db
        self._orders = OrderRepository(db)
        self._items = OrderedItemRepository(db)
        self._checks = CheckService(db)
        self._log = ActivityLogService(db)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _require_user(self, user_id: int) -> None:
        if self._db.get(User, user_id) is None:
            raise MissingReferenceError("User", user_id)

    def _orderable_item(self, item_id: int) -> Item:
        item = self._db.get(Item, item_id)
        if item is None:
            raise MissingReferenceError("Item", item_id)
        if not item.is_active:
            raise ValidationError(f"Item {item_id} is not available", item_id=item_id)
        return item

    def _lock_order(self, order_id: int, as_reference: bool = False) -> Order:
        order = self._orders.lock(order_id)
        if order is None:
            if as_reference:
                raise MissingReferenceError("Order", order_id)
            raise NotFoundError("Order", order_id)
        return order

    def _add_item(
        self,
        order: Order,
        check: Check,
        item: Item,
        seat_num: int | None,
        course_num: int | None,
        item_note: str | None,
    ) -> OrderedItem:
        ordered_item = OrderedItem(
            item_id=item.id,
            order_id=order.id,
            check_id=check.id,
            price_cents=item.price_cents,
            seat_num=seat_num,
            course_num=course_num,
            item_note=clean_text(item_note, Limits.MAX_NOTE_LENGTH),
            is_void=False,
        )
        self._db.add(ordered_item)
        # A new unfinished item reopens the ticket
        order.completed_at = None
        return ordered_item

    def _refresh_order_completion(self, order: Order) -> None:
        """
        A ticket is complete when it has at least one live item and every
        live item is completed. Its completed_at is the latest item time.
        """
        self._db.flush()
        times = self._db.execute(
            select(OrderedItem.completed_at).where(
                OrderedItem.order_id == order.id,
                OrderedItem.is_void.is_(False),
            )
        ).scalars().all()

        if times and all(t is not None for t in times):
            order.completed_at = max(as_utc(t) for t in times)
        else:
            order.completed_at = None

    def _get_item_for_update(self, ordered_item_id: int) -> OrderedItem:
        ordered_item = self._items.find_by_id(ordered_item_id)
        if ordered_item is None:
            raise NotFoundError("Ordered item", ordered_item_id)
        return ordered_item

    # =========================================================================
    # Orders
    # =========================================================================

    def create_order(self, user_id: int) -> Order:
        """Create an empty ticket, sent now."""
        self._require_user(user_id)
        order = Order(user_id=user_id, sent_at=utcnow())
        with transaction(self._db):
            self._db.add(order)
        self._db.refresh(order)

        logger.info("Order created", order_id=order.id, user_id=user_id)
        return order

    def send_order(self, user_id: int, check_id: int, lines: Iterable[OrderLine]) -> Order:
        """
        Create a ticket and all of its items in one transaction.

        Any invalid line (unknown or inactive item) rolls back the whole
        send, so the kitchen never sees half an order.
        """
        lines = list(lines)
        self._require_user(user_id)

        with transaction(self._db):
            check = self._checks.lock_editable(check_id, as_reference=True)
            items = [self._orderable_item(line.item_id) for line in lines]

            order = Order(user_id=user_id, sent_at=utcnow())
            self._db.add(order)
            self._db.flush()

            for line, item in zip(lines, items):
                self._add_item(order, check, item, line.seat_num, line.course_num, line.item_note)

            totals = recalculate(self._db, check)
        self._db.refresh(order)

        logger.info(
            "Order sent",
            order_id=order.id,
            check_id=check_id,
            user_id=user_id,
            item_count=len(lines),
            subtotal_cents=totals.subtotal_cents,
        )
        return order

    def find_orders(self, filters: OrderFilters | None = None) -> Sequence[Order]:
        return self._orders.find_all(filters)

    def get_order(self, order_id: int) -> Order:
        order = self._orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def get_order_with_items(self, order_id: int) -> OrderWithItemsOut:
        """Ticket plus its items grouped by category for the expo screen."""
        order = self.get_order(order_id)
        rows = self._items.find_views_for_order(order_id)
        return OrderWithItemsOut(
            **OrderOut.model_validate(order).model_dump(),
            items=[to_view(row) for row in rows],
        )

    def fire_course(self, order_id: int, course: int, fired_at: datetime | None = None) -> Order:
        """
        Release a held course to the kitchen.

        Courses fire in order: course 3 cannot fire before course 2 and
        neither can fire twice.
        """
        if course not in FIREABLE_COURSES:
            raise ValidationError(
                f"Only courses {', '.join(str(c) for c in FIREABLE_COURSES)} can be fired",
                order_id=order_id,
                course=course,
            )
        fired_at = as_utc(fired_at) or utcnow()

        with transaction(self._db):
            order = self._lock_order(order_id)

            if order.fired_at(course) is not None:
                raise InvalidStateError("Order", "fired", reason=f"course {course} already fired", order_id=order_id)
            for later in FIREABLE_COURSES:
                if later > course and order.fired_at(later) is not None:
                    raise InvalidStateError(
                        "Order", "fired", reason=f"course {later} already fired", order_id=order_id
                    )
            if fired_at < as_utc(order.sent_at):
                raise InvalidStateError(
                    "Order", "sent", reason="a course cannot fire before the order was sent", order_id=order_id
                )
            for earlier in FIREABLE_COURSES:
                earlier_at = order.fired_at(earlier)
                if earlier < course and earlier_at is not None and fired_at < as_utc(earlier_at):
                    raise InvalidStateError(
                        "Order", "fired", reason=f"course {course} cannot fire before course {earlier}", order_id=order_id
                    )

            setattr(order, f"fire_course_{course}", fired_at)
        self._db.refresh(order)

        logger.info("Course fired", order_id=order_id, course=course)
        return order

    # =========================================================================
    # Ordered items
    # =========================================================================

    def create_ordered_item(self, data: OrderedItemCreate) -> OrderedItem:
        """
        Add one item to an existing ticket.

        Raises:
            MissingReferenceError: item, order or check does not exist.
            ValidationError: inactive item, or the ticket belongs to another check.
            InvalidStateError: the check is closed or void.
        """
        item = self._orderable_item(data.item_id)
        if self._orders.find_by_id(data.order_id) is None:
            raise MissingReferenceError("Order", data.order_id)

        # Lock order: check row, then order row
        with transaction(self._db):
            check = self._checks.lock_editable(data.check_id, as_reference=True)
            order = self._lock_order(data.order_id, as_reference=True)

            other_checks = self._items.check_ids_for_order(order.id) - {check.id}
            if other_checks:
                raise ValidationError(
                    f"Order {order.id} already belongs to another check",
                    order_id=order.id,
                    check_id=check.id,
                )

            ordered_item = self._add_item(
                order, check, item, data.seat_num, data.course_num, data.item_note
            )
            recalculate(self._db, check)
        self._db.refresh(ordered_item)

        logger.info(
            "Ordered item added",
            ordered_item_id=ordered_item.id,
            order_id=order.id,
            check_id=check.id,
            price_cents=ordered_item.price_cents,
        )
        return ordered_item

    def find_ordered_items(self, filters: OrderedItemFilters | None = None) -> list[OrderedItemView]:
        return [to_view(row) for row in self._items.find_views(filters)]

    def get_ordered_item(self, ordered_item_id: int) -> OrderedItemView:
        row = self._items.find_view(ordered_item_id)
        if row is None:
            raise NotFoundError("Ordered item", ordered_item_id)
        return to_view(row)

    def update_ordered_item(
        self, ordered_item_id: int, patch: OrderedItemPatch, actor_id: int
    ) -> OrderedItem:
        """
        Apply the fields present in `patch`.

        Voids and discount changes are logged. Re-voiding a void item is a
        no-op, even on a closed check.
        """
        changes = patch.provided()
        if not changes:
            raise ValidationError(ErrorMessages.EMPTY_PATCH, ordered_item_id=ordered_item_id)

        ordered_item = self._get_item_for_update(ordered_item_id)
        if ordered_item.is_void and changes == {"is_void": True}:
            return ordered_item

        with transaction(self._db):
            check = self._checks.lock_editable(ordered_item.check_id)
            self._db.refresh(ordered_item)

            if ordered_item.is_void:
                raise InvalidStateError(
                    "Ordered item", "void", reason="void items cannot be changed",
                    ordered_item_id=ordered_item_id,
                )

            if "seat_num" in changes:
                ordered_item.seat_num = changes["seat_num"]
            if "course_num" in changes:
                ordered_item.course_num = changes["course_num"]
            if "item_note" in changes:
                ordered_item.item_note = clean_text(changes["item_note"], Limits.MAX_NOTE_LENGTH)

            if "item_discount_id" in changes and changes["item_discount_id"] != ordered_item.item_discount_id:
                discount_id = changes["item_discount_id"]
                if discount_id is not None:
                    discount = self._db.get(Discount, discount_id)
                    if discount is None or not discount.is_active:
                        raise MissingReferenceError("Discount", discount_id)
                ordered_item.item_discount_id = discount_id
                self._log.record(actor_id, LogEvent.DISCOUNT_ITEM, entity_id=ordered_item.id)

            if changes.get("is_void") is True:
                ordered_item.is_void = True
                self._log.record(actor_id, LogEvent.VOID_ITEM, entity_id=ordered_item.id)
                order = self._lock_order(ordered_item.order_id)
                self._refresh_order_completion(order)

            recalculate(self._db, check)
        self._db.refresh(ordered_item)

        logger.info(
            "Ordered item updated",
            ordered_item_id=ordered_item_id,
            fields=sorted(changes),
            user_id=actor_id,
        )
        return ordered_item

    def complete_ordered_item(self, ordered_item_id: int, completed_by: int) -> OrderedItem:
        """Mark an item made; the ticket completes with its last live item."""
        ordered_item = self._get_item_for_update(ordered_item_id)

        with transaction(self._db):
            order = self._lock_order(ordered_item.order_id)
            self._db.refresh(ordered_item)

            if ordered_item.is_void:
                raise InvalidStateError(
                    "Ordered item", "void", reason="void items cannot be completed",
                    ordered_item_id=ordered_item_id,
                )
            if ordered_item.completed_at is not None:
                return ordered_item

            ordered_item.completed_at = utcnow()
            ordered_item.completed_by = completed_by
            self._refresh_order_completion(order)
        self._db.refresh(ordered_item)

        logger.info(
            "Ordered item completed",
            ordered_item_id=ordered_item_id,
            order_id=ordered_item.order_id,
            completed_by=completed_by,
        )
        return ordered_item

    def deliver_ordered_item(self, ordered_item_id: int) -> OrderedItem:
        ordered_item = self._get_item_for_update(ordered_item_id)
        if ordered_item.is_void:
            raise InvalidStateError(
                "Ordered item", "void", reason="void items cannot be delivered",
                ordered_item_id=ordered_item_id,
            )
        if ordered_item.delivered_at is not None:
            return ordered_item

        with transaction(self._db):
            ordered_item.delivered_at = utcnow()
        self._db.refresh(ordered_item)

        logger.info("Ordered item delivered", ordered_item_id=ordered_item_id)
        return ordered_item
