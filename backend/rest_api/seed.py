"""
Seed data for development and testing.
Creates destinations, categories, a small demo menu, modifier groups,
discounts and one staff member per common role.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import (
    Category,
    Destination,
    Discount,
    Item,
    ItemModGroup,
    Mod,
    ModCategory,
    ModGroup,
    ModModGroup,
    User,
)
from shared.config.constants import DestinationName, Role
from shared.config.logging import get_logger
from shared.infrastructure.db import safe_commit
from shared.security.password import hash_password

logger = get_logger(__name__)


# Demo password for every seeded staff account
DEMO_PASSWORD = "tapntable123"

DEMO_STAFF = [
    # (username, first, last, role)
    ("owner", "Olivia", "Owens", Role.OWNER),
    ("manager", "Marcus", "Reyes", Role.MANAGER),
    ("server", "Sam", "Parker", Role.SERVER),
    ("bartender", "Bea", "Lopez", Role.BARTENDER),
    ("cook", "Carl", "Nguyen", Role.COOK),
    ("host", "Hana", "Ito", Role.HOST),
]

# category -> [(item name, price cents, destination)]
DEMO_MENU = {
    "Appetizers": [
        ("Wings", 1000, DestinationName.KITCHEN_HOT),
        ("Nachos", 1200, DestinationName.KITCHEN_HOT),
        ("House Salad", 800, DestinationName.KITCHEN_COLD),
    ],
    "Entrees": [
        ("Burger", 1500, DestinationName.KITCHEN_HOT),
        ("Ribeye", 3200, DestinationName.KITCHEN_HOT),
        ("Fish Tacos", 1600, DestinationName.KITCHEN_HOT),
    ],
    "Desserts": [
        ("Cheesecake", 900, DestinationName.KITCHEN_COLD),
    ],
    "Beer": [
        ("Draft IPA", 700, DestinationName.BAR),
        ("Lager", 600, DestinationName.BAR),
    ],
    "Non-Alcoholic": [
        ("Soda", 300, DestinationName.NO_SEND),
        ("Coffee", 350, DestinationName.NO_SEND),
    ],
}

# group name -> (num_choices, is_required, mod category, [(mod, price cents)], items offered on)
DEMO_MOD_GROUPS = {
    "Steak Temp": (
        1, True, "Temps",
        [("Rare", None), ("Medium Rare", None), ("Medium", None), ("Well Done", None)],
        ["Ribeye", "Burger"],
    ),
    "Burger Add-ons": (
        None, False, "Toppings",
        [("Add Bacon", 200), ("Add Cheese", 100), ("No Onions", None)],
        ["Burger"],
    ),
    "Wing Sauce": (
        1, True, "Sauces",
        [("Buffalo", None), ("BBQ", None), ("Garlic Parm", None)],
        ["Wings"],
    ),
}

DEMO_DISCOUNTS = [
    # (name, percent_bps, amount_cents)
    ("Employee Meal", 5000, None),
    ("Happy Hour", 2000, None),
    ("Manager Comp $5", None, 500),
]


def seed_staff(db: Session) -> None:
    """Create demo staff accounts. Idempotent by username."""
    password_hash = hash_password(DEMO_PASSWORD)
    for username, first, last, role in DEMO_STAFF:
        if db.scalar(select(User.id).where(User.username == username)):
            continue
        db.add(User(
            username=username,
            password_hash=password_hash,
            first_name=first,
            last_name=last,
            role=role,
        ))
    safe_commit(db)


def seed_catalog(db: Session) -> None:
    """Destinations, categories and the demo menu. Idempotent by name."""
    destinations = {d.name: d for d in db.scalars(select(Destination))}
    for name in DestinationName.ALL:
        if name not in destinations:
            destinations[name] = Destination(name=name)
            db.add(destinations[name])
    db.flush()

    for category_name, items in DEMO_MENU.items():
        category = db.scalar(select(Category).where(Category.name == category_name))
        if category is None:
            category = Category(name=category_name)
            db.add(category)
            db.flush()

        for item_name, price_cents, destination in items:
            if db.scalar(select(Item.id).where(Item.name == item_name)):
                continue
            db.add(Item(
                name=item_name,
                price_cents=price_cents,
                category_id=category.id,
                destination_id=destinations[destination].id,
            ))
    safe_commit(db)


def seed_modifiers(db: Session) -> None:
    """Mod categories, mods and groups, linked to demo items."""
    for group_name, (num_choices, is_required, mod_cat, mods, item_names) in DEMO_MOD_GROUPS.items():
        if db.scalar(select(ModGroup.id).where(ModGroup.name == group_name)):
            continue

        category = db.scalar(select(ModCategory).where(ModCategory.name == mod_cat))
        if category is None:
            category = ModCategory(name=mod_cat)
            db.add(category)

        group = ModGroup(name=group_name, num_choices=num_choices, is_required=is_required)
        db.add(group)
        db.flush()

        for mod_name, price_cents in mods:
            mod = Mod(name=mod_name, mod_cat_id=category.id, mod_price_cents=price_cents)
            db.add(mod)
            db.flush()
            db.add(ModModGroup(mod_id=mod.id, mod_group_id=group.id))

        for item_name in item_names:
            item_id = db.scalar(select(Item.id).where(Item.name == item_name))
            if item_id is not None:
                db.add(ItemModGroup(item_id=item_id, mod_group_id=group.id))
    safe_commit(db)


def seed_discounts(db: Session) -> None:
    for name, percent_bps, amount_cents in DEMO_DISCOUNTS:
        if db.scalar(select(Discount.id).where(Discount.name == name)):
            continue
        db.add(Discount(name=name, percent_bps=percent_bps, amount_cents=amount_cents))
    safe_commit(db)


def seed(db: Session) -> None:
    """
    Seed all demo data. Safe to run repeatedly.
    """
    seed_staff(db)
    seed_catalog(db)
    seed_modifiers(db)
    seed_discounts(db)
    logger.info(
        "Seed complete",
        staff=len(DEMO_STAFF),
        items=sum(len(items) for items in DEMO_MENU.values()),
        mod_groups=len(DEMO_MOD_GROUPS),
        discounts=len(DEMO_DISCOUNTS),
    )
