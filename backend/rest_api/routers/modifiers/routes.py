"""
Modifier attachment router.

Catalog links (item-mod-groups, mod-mod-groups) are menu configuration
and need a manager to change. Ordered-item mods are taken by servers.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import ModifierService
from shared.config.constants import Role
from shared.infrastructure.db import get_db
from shared.security.auth import current_user_context, require_role
from shared.utils.schemas import (
    ItemModGroupLink,
    ItemModGroupOut,
    ModModGroupLink,
    ModModGroupOut,
    OrderedItemModLink,
    OrderedItemModOut,
)


router = APIRouter(prefix="/api/modifiers", tags=["modifiers"])


# =============================================================================
# Item <-> mod group
# =============================================================================


@router.post("/item-mod-groups", response_model=ItemModGroupOut, status_code=status.HTTP_201_CREATED)
def attach_item_mod_group(
    body: ItemModGroupLink,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ItemModGroupOut:
    require_role(ctx, Role.MANAGER)
    return ModifierService(db).attach_item_mod_group(body.item_id, body.mod_group_id)


@router.get("/item-mod-groups", response_model=list[ItemModGroupOut])
def list_item_mod_groups(
    item_id: int | None = None,
    mod_group_id: int | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[ItemModGroupOut]:
    return ModifierService(db).list_item_mod_groups(
        item_id, mod_group_id, pagination.limit, pagination.offset
    )


@router.delete("/item-mod-groups/{item_id}/{mod_group_id}", status_code=status.HTTP_204_NO_CONTENT)
def detach_item_mod_group(
    item_id: int,
    mod_group_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> Response:
    require_role(ctx, Role.MANAGER)
    ModifierService(db).detach_item_mod_group(item_id, mod_group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Mod <-> mod group
# =============================================================================


@router.post("/mod-mod-groups", response_model=ModModGroupOut, status_code=status.HTTP_201_CREATED)
def attach_mod_mod_group(
    body: ModModGroupLink,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> ModModGroupOut:
    require_role(ctx, Role.MANAGER)
    return ModifierService(db).attach_mod_mod_group(body.mod_id, body.mod_group_id)


@router.get("/mod-mod-groups", response_model=list[ModModGroupOut])
def list_mod_mod_groups(
    mod_id: int | None = None,
    mod_group_id: int | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[ModModGroupOut]:
    return ModifierService(db).list_mod_mod_groups(
        mod_id, mod_group_id, pagination.limit, pagination.offset
    )


@router.delete("/mod-mod-groups/{mod_id}/{mod_group_id}", status_code=status.HTTP_204_NO_CONTENT)
def detach_mod_mod_group(
    mod_id: int,
    mod_group_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> Response:
    require_role(ctx, Role.MANAGER)
    ModifierService(db).detach_mod_mod_group(mod_id, mod_group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Ordered item <-> mod
# =============================================================================


@router.post("/ordered-item-mods", response_model=OrderedItemModOut, status_code=status.HTTP_201_CREATED)
def attach_ordered_item_mod(
    body: OrderedItemModLink,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> OrderedItemModOut:
    return ModifierService(db).attach_ordered_item_mod(body.ordered_item_id, body.mod_id)


@router.get("/ordered-item-mods", response_model=list[OrderedItemModOut])
def list_ordered_item_mods(
    ordered_item_id: int | None = None,
    mod_id: int | None = None,
    pagination: Pagination = Depends(get_pagination),
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> list[OrderedItemModOut]:
    return ModifierService(db).list_ordered_item_mods(
        ordered_item_id, mod_id, pagination.limit, pagination.offset
    )


@router.delete("/ordered-item-mods/{ordered_item_id}/{mod_id}", status_code=status.HTTP_204_NO_CONTENT)
def detach_ordered_item_mod(
    ordered_item_id: int,
    mod_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(current_user_context),
) -> Response:
    ModifierService(db).detach_ordered_item_mod(ordered_item_id, mod_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
