"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class, IdType, mixins
- user: User
- catalog: Category, Destination, Item, ModCategory, Mod, ModGroup, Discount
- order: Order, OrderedItem
- billing: Check, Payment
- modifier: ItemModGroup, ModModGroup, OrderedItemMod
- audit: ActivityLog
"""

# Base classes
from .base import Base, IdType, TimestampMixin, ActiveMixin

# Staff
from .user import User

# Catalog
from .catalog import Category, Destination, Item, ModCategory, Mod, ModGroup, Discount

# Orders
from .order import Order, OrderedItem

# Billing
from .billing import Check, Payment

# Modifier associations
from .modifier import ItemModGroup, ModModGroup, OrderedItemMod

# Audit
from .audit import ActivityLog


__all__ = [
    # Base
    "Base",
    "IdType",
    "TimestampMixin",
    "ActiveMixin",
    # Staff
    "User",
    # Catalog
    "Category",
    "Destination",
    "Item",
    "ModCategory",
    "Mod",
    "ModGroup",
    "Discount",
    # Orders
    "Order",
    "OrderedItem",
    # Billing
    "Check",
    "Payment",
    # Modifier associations
    "ItemModGroup",
    "ModModGroup",
    "OrderedItemMod",
    # Audit
    "ActivityLog",
]
