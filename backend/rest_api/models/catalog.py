"""
Catalog Models: Category, Destination, Item, ModCategory, Mod, ModGroup, Discount.

Catalog rows are read-mostly configuration. Ordered items reference them
and snapshot the item price at order time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import ActiveMixin, Base, IdType

if TYPE_CHECKING:
    from .order import OrderedItem


class Category(ActiveMixin, Base):
    """Menu category (Appetizers, Entrees, Beer, ...)."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    items: Mapped[list["Item"]] = relationship(back_populates="category")


class Destination(Base):
    """Production station an item prints to (Kitchen-Hot, Bar, ...)."""

    __tablename__ = "destination"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)

    items: Mapped[list["Item"]] = relationship(back_populates="destination")

    def __repr__(self) -> str:
        return f"<Destination(id={self.id}, name='{self.name}')>"


class Item(ActiveMixin, Base):
    """A sellable menu item."""

    __tablename__ = "item"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("category.id"), nullable=False, index=True
    )
    destination_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("destination.id"), nullable=False, index=True
    )
    # Remaining stock for 86'd items; NULL means untracked
    count: Mapped[Optional[int]] = mapped_column(Integer)

    category: Mapped["Category"] = relationship(back_populates="items")
    destination: Mapped["Destination"] = relationship(back_populates="items")
    ordered: Mapped[list["OrderedItem"]] = relationship(back_populates="item")

    __table_args__ = (
        CheckConstraint("price_cents >= 0", name="chk_item_price_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, name='{self.name}', price={self.price_cents})>"


class ModCategory(Base):
    """Grouping for modifiers in the catalog UI (Temps, Sides, Sauces)."""

    __tablename__ = "mod_category"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class Mod(ActiveMixin, Base):
    """
    A modifier ("no onions", "medium rare", "add bacon").
    mod_price_cents is informational; it is not added to the check subtotal.
    """

    __tablename__ = "mod"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    mod_cat_id: Mapped[Optional[int]] = mapped_column(
        IdType, ForeignKey("mod_category.id"), index=True
    )
    mod_price_cents: Mapped[Optional[int]] = mapped_column(Integer)

    mod_category: Mapped[Optional["ModCategory"]] = relationship()


class ModGroup(Base):
    """A choice set of modifiers offered for an item ("Steak temp", choose 1)."""

    __tablename__ = "mod_group"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    num_choices: Mapped[Optional[int]] = mapped_column(Integer)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<ModGroup(id={self.id}, name='{self.name}')>"


class Discount(ActiveMixin, Base):
    """
    A check or item discount: either a percentage (basis points) or a
    fixed amount, never both.
    """

    __tablename__ = "discount"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    percent_bps: Mapped[Optional[int]] = mapped_column(Integer)
    amount_cents: Mapped[Optional[int]] = mapped_column(Integer)

    __table_args__ = (
        CheckConstraint(
            "(percent_bps IS NULL) <> (amount_cents IS NULL)",
            name="chk_discount_one_kind",
        ),
        CheckConstraint(
            "percent_bps IS NULL OR (percent_bps >= 0 AND percent_bps <= 10000)",
            name="chk_discount_percent_range",
        ),
        CheckConstraint(
            "amount_cents IS NULL OR amount_cents >= 0",
            name="chk_discount_amount_non_negative",
        ),
    )

    def __repr__(self) -> str:
        return f"<Discount(id={self.id}, name='{self.name}', bps={self.percent_bps}, amount={self.amount_cents})>"
