"""
Repository Pattern implementation.
Centralizes filtered read queries; services own all writes.

Usage:
    from rest_api.repositories import CheckRepository, CheckFilters

    repo = CheckRepository(db)
    open_checks = repo.find_all(CheckFilters(is_open=True, user_id=7))
"""

from .base import BaseRepository, RepositoryFilters
from .check import CheckRepository, CheckFilters
from .order import (
    OrderRepository,
    OrderFilters,
    OrderedItemRepository,
    OrderedItemFilters,
)
from .payment import PaymentRepository, PaymentFilters, TotalsFilters
from .activity_log import ActivityLogRepository, ActivityLogFilters
from .user import UserRepository, UserFilters

__all__ = [
    # Base
    "BaseRepository",
    "RepositoryFilters",
    # Check
    "CheckRepository",
    "CheckFilters",
    # Order
    "OrderRepository",
    "OrderFilters",
    "OrderedItemRepository",
    "OrderedItemFilters",
    # Payment
    "PaymentRepository",
    "PaymentFilters",
    "TotalsFilters",
    # Activity log
    "ActivityLogRepository",
    "ActivityLogFilters",
    # Staff
    "UserRepository",
    "UserFilters",
]
