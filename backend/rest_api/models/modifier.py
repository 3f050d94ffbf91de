"""
Modifier association models.

Three many-to-many links with a composite primary key and nothing else:
- ItemModGroup: which modifier groups are offered for a catalog item
- ModModGroup: which modifiers belong to a group
- OrderedItemMod: which modifiers were chosen for a specific ordered item
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, IdType

if TYPE_CHECKING:
    from .catalog import Item, Mod, ModGroup
    from .order import OrderedItem


class ItemModGroup(Base):
    __tablename__ = "item_mod_group"

    item_id: Mapped[int] = mapped_column(IdType, ForeignKey("item.id"), primary_key=True)
    mod_group_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("mod_group.id"), primary_key=True, index=True
    )

    item: Mapped["Item"] = relationship()
    mod_group: Mapped["ModGroup"] = relationship()

    def __repr__(self) -> str:
        return f"<ItemModGroup(item={self.item_id}, mod_group={self.mod_group_id})>"


class ModModGroup(Base):
    __tablename__ = "mod_mod_group"

    mod_id: Mapped[int] = mapped_column(IdType, ForeignKey("mod.id"), primary_key=True)
    mod_group_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("mod_group.id"), primary_key=True, index=True
    )

    mod: Mapped["Mod"] = relationship()
    mod_group: Mapped["ModGroup"] = relationship()

    def __repr__(self) -> str:
        return f"<ModModGroup(mod={self.mod_id}, mod_group={self.mod_group_id})>"


class OrderedItemMod(Base):
    __tablename__ = "ordered_item_mod"

    ordered_item_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("ordered_item.id"), primary_key=True
    )
    mod_id: Mapped[int] = mapped_column(IdType, ForeignKey("mod.id"), primary_key=True, index=True)

    ordered_item: Mapped["OrderedItem"] = relationship(back_populates="mods")
    mod: Mapped["Mod"] = relationship()

    def __repr__(self) -> str:
        return f"<OrderedItemMod(ordered_item={self.ordered_item_id}, mod={self.mod_id})>"
