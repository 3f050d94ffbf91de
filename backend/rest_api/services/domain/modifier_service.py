"""
Modifier Domain Service.

Attach, list and detach for the three modifier associations:
item <-> mod group, mod <-> mod group, ordered item <-> mod.
"""

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rest_api.models import (
    Item,
    ItemModGroup,
    Mod,
    ModGroup,
    ModModGroup,
    OrderedItem,
    OrderedItemMod,
)
from shared.config.constants import Limits
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import (
    DuplicateAttachmentError,
    InvalidStateError,
    MissingReferenceError,
    NotFoundError,
)
from shared.utils.schemas import (
    ItemModGroupOut,
    ModModGroupOut,
    OrderedItemModOut,
)
from .check_service import CheckService

logger = get_logger(__name__)


def _page(query: Select, limit: int | None, offset: int) -> Select:
    limit = min(max(limit or Limits.DEFAULT_PAGE_SIZE, 1), Limits.MAX_PAGE_SIZE)
    return query.offset(max(offset, 0)).limit(limit)


class ModifierService:
    """Domain service for modifier attachments."""

    def __init__(self, db: Session):
        self._db = db
        self._checks = CheckService(db)

    def _require(self, model, label: str, entity_id: int):
        row = self._db.get(model, entity_id)
        if row is None:
            raise MissingReferenceError(label, entity_id)
        return row

    def _insert(self, link, relation: str, left_id: int, right_id: int) -> None:
        if self._db.get(type(link), (left_id, right_id)) is not None:
            raise DuplicateAttachmentError(relation, left_id, right_id)
        self._db.add(link)
        try:
            self._db.flush()
        except IntegrityError as exc:
            # Inserted by a concurrent request after the lookup above
            raise DuplicateAttachmentError(relation, left_id, right_id) from exc

    def _remove(self, model, relation: str, left_id: int, right_id: int) -> None:
        link = self._db.get(model, (left_id, right_id))
        if link is None:
            raise NotFoundError(relation, f"({left_id}, {right_id})")
        self._db.delete(link)

    # =========================================================================
    # Item <-> mod group
    # =========================================================================

    def attach_item_mod_group(self, item_id: int, mod_group_id: int) -> ItemModGroupOut:
        with transaction(self._db):
            item = self._require(Item, "Item", item_id)
            group = self._require(ModGroup, "Mod group", mod_group_id)
            self._insert(
                ItemModGroup(item_id=item_id, mod_group_id=mod_group_id),
                "Item mod group", item_id, mod_group_id,
            )

        logger.info("Mod group attached to item", item_id=item_id, mod_group_id=mod_group_id)
        return ItemModGroupOut(
            item_id=item_id, mod_group_id=mod_group_id,
            item_name=item.name, mod_group_name=group.name,
        )

    def list_item_mod_groups(
        self,
        item_id: int | None = None,
        mod_group_id: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ItemModGroupOut]:
        query = (
            select(ItemModGroup.item_id, ItemModGroup.mod_group_id, Item.name, ModGroup.name)
            .join(Item, Item.id == ItemModGroup.item_id)
            .join(ModGroup, ModGroup.id == ItemModGroup.mod_group_id)
        )
        if item_id is not None:
            query = query.where(ItemModGroup.item_id == item_id)
        if mod_group_id is not None:
            query = query.where(ItemModGroup.mod_group_id == mod_group_id)
        query = _page(query.order_by(ItemModGroup.item_id, ItemModGroup.mod_group_id), limit, offset)

        return [
            ItemModGroupOut(item_id=i, mod_group_id=g, item_name=i_name, mod_group_name=g_name)
            for i, g, i_name, g_name in self._db.execute(query).all()
        ]

    def detach_item_mod_group(self, item_id: int, mod_group_id: int) -> None:
        with transaction(self._db):
            self._remove(ItemModGroup, "Item mod group", item_id, mod_group_id)
        logger.info("Mod group detached from item", item_id=item_id, mod_group_id=mod_group_id)

    # =========================================================================
    # Mod <-> mod group
    # =========================================================================

    def attach_mod_mod_group(self, mod_id: int, mod_group_id: int) -> ModModGroupOut:
        with transaction(self._db):
            mod = self._require(Mod, "Mod", mod_id)
            group = self._require(ModGroup, "Mod group", mod_group_id)
            self._insert(
                ModModGroup(mod_id=mod_id, mod_group_id=mod_group_id),
                "Mod mod group", mod_id, mod_group_id,
            )

        logger.info("Mod added to group", mod_id=mod_id, mod_group_id=mod_group_id)
        return ModModGroupOut(
            mod_id=mod_id, mod_group_id=mod_group_id,
            mod_name=mod.name, mod_group_name=group.name,
        )

    def list_mod_mod_groups(
        self,
        mod_id: int | None = None,
        mod_group_id: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[ModModGroupOut]:
        query = (
            select(ModModGroup.mod_id, ModModGroup.mod_group_id, Mod.name, ModGroup.name)
            .join(Mod, Mod.id == ModModGroup.mod_id)
            .join(ModGroup, ModGroup.id == ModModGroup.mod_group_id)
        )
        if mod_id is not None:
            query = query.where(ModModGroup.mod_id == mod_id)
        if mod_group_id is not None:
            query = query.where(ModModGroup.mod_group_id == mod_group_id)
        query = _page(query.order_by(ModModGroup.mod_group_id, ModModGroup.mod_id), limit, offset)

        return [
            ModModGroupOut(mod_id=m, mod_group_id=g, mod_name=m_name, mod_group_name=g_name)
            for m, g, m_name, g_name in self._db.execute(query).all()
        ]

    def detach_mod_mod_group(self, mod_id: int, mod_group_id: int) -> None:
        with transaction(self._db):
            self._remove(ModModGroup, "Mod mod group", mod_id, mod_group_id)
        logger.info("Mod removed from group", mod_id=mod_id, mod_group_id=mod_group_id)

    # =========================================================================
    # Ordered item <-> mod
    # =========================================================================

    def _lock_live_ordered_item(self, ordered_item_id: int, as_reference: bool) -> OrderedItem:
        """Modifiers change only on live items of an editable check."""
        ordered_item = self._db.get(OrderedItem, ordered_item_id)
        if ordered_item is None:
            if as_reference:
                raise MissingReferenceError("Ordered item", ordered_item_id)
            raise NotFoundError("Ordered item", ordered_item_id)

        self._checks.lock_editable(ordered_item.check_id)
        self._db.refresh(ordered_item)
        if ordered_item.is_void:
            raise InvalidStateError(
                "Ordered item", "void", reason="void items cannot be modified",
                ordered_item_id=ordered_item_id,
            )
        return ordered_item

    def attach_ordered_item_mod(self, ordered_item_id: int, mod_id: int) -> OrderedItemModOut:
        with transaction(self._db):
            ordered_item = self._lock_live_ordered_item(ordered_item_id, as_reference=True)
            mod = self._require(Mod, "Mod", mod_id)
            self._insert(
                OrderedItemMod(ordered_item_id=ordered_item_id, mod_id=mod_id),
                "Ordered item mod", ordered_item_id, mod_id,
            )
            item_name = ordered_item.item.name

        logger.info("Mod added to ordered item", ordered_item_id=ordered_item_id, mod_id=mod_id)
        return OrderedItemModOut(
            ordered_item_id=ordered_item_id, mod_id=mod_id,
            mod_name=mod.name, mod_price_cents=mod.mod_price_cents, item_name=item_name,
        )

    def list_ordered_item_mods(
        self,
        ordered_item_id: int | None = None,
        mod_id: int | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[OrderedItemModOut]:
        query = (
            select(
                OrderedItemMod.ordered_item_id,
                OrderedItemMod.mod_id,
                Mod.name,
                Mod.mod_price_cents,
                Item.name,
            )
            .join(Mod, Mod.id == OrderedItemMod.mod_id)
            .join(OrderedItem, OrderedItem.id == OrderedItemMod.ordered_item_id)
            .join(Item, Item.id == OrderedItem.item_id)
        )
        if ordered_item_id is not None:
            query = query.where(OrderedItemMod.ordered_item_id == ordered_item_id)
        if mod_id is not None:
            query = query.where(OrderedItemMod.mod_id == mod_id)
        query = _page(query.order_by(OrderedItemMod.ordered_item_id, OrderedItemMod.mod_id), limit, offset)

        return [
            OrderedItemModOut(
                ordered_item_id=oi, mod_id=m, mod_name=m_name,
                mod_price_cents=m_price, item_name=i_name,
            )
            for oi, m, m_name, m_price, i_name in self._db.execute(query).all()
        ]

    def detach_ordered_item_mod(self, ordered_item_id: int, mod_id: int) -> None:
        with transaction(self._db):
            self._lock_live_ordered_item(ordered_item_id, as_reference=False)
            self._remove(OrderedItemMod, "Ordered item mod", ordered_item_id, mod_id)
        logger.info("Mod removed from ordered item", ordered_item_id=ordered_item_id, mod_id=mod_id)

