"""
Order Models: Order (kitchen ticket), OrderedItem.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.utils.clock import utcnow
from .base import Base, IdType, TimestampMixin

if TYPE_CHECKING:
    from .billing import Check
    from .catalog import Item, Discount
    from .modifier import OrderedItemMod


class Order(Base):
    """
    One "send" to production: a batch of ordered items fired together.

    Table is "app_order" because ORDER is a reserved SQL keyword.
    """

    __tablename__ = "app_order"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_user.id"), nullable=False, index=True
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    fire_course_2: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    fire_course_3: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    items: Mapped[list["OrderedItem"]] = relationship(
        back_populates="order", order_by="OrderedItem.id"
    )

    def fired_at(self, course: int) -> Optional[datetime]:
        return getattr(self, f"fire_course_{course}")

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, user={self.user_id}, sent_at={self.sent_at}, completed_at={self.completed_at})>"


class OrderedItem(TimestampMixin, Base):
    """
    One menu item instance on a check, sent with an order.

    item_id, order_id, check_id and price_cents are fixed at creation.
    Rows are never deleted: is_void removes them from the check subtotal.
    """

    __tablename__ = "ordered_item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    item_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("item.id"), nullable=False, index=True
    )
    order_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_order.id"), nullable=False, index=True
    )
    check_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_check.id"), nullable=False, index=True
    )
    # Snapshot of item.price_cents when ordered
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_num: Mapped[Optional[int]] = mapped_column(Integer)
    course_num: Mapped[Optional[int]] = mapped_column(Integer)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_by: Mapped[Optional[int]] = mapped_column(IdType, ForeignKey("app_user.id"))
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    item_note: Mapped[Optional[str]] = mapped_column(Text)
    item_discount_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("discount.id")
    )
    is_void: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    item: Mapped["Item"] = relationship(back_populates="ordered")
    order: Mapped["Order"] = relationship(back_populates="items")
    check: Mapped["Check"] = relationship(back_populates="ordered_items")
    discount: Mapped[Optional["Discount"]] = relationship()
    mods: Mapped[list["OrderedItemMod"]] = relationship(
        back_populates="ordered_item", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_ordered_item_price_non_negative"),
        Index("ix_ordered_item_check_void", "check_id", "is_void"),
    )

    def __repr__(self) -> str:
        return (
            f"<OrderedItem(id={self.id}, item={self.item_id}, order={self.order_id}, "
            f"check={self.check_id}, price={self.price_cents}, void={self.is_void})>"
        )
