"""
Domain Services - application layer.

Routers stay thin: they authenticate, check roles, and delegate here.
Services own transactions and business rules and read through the
repositories.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Repository (data access)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import CheckService

    # In router
    service = CheckService(db)
    check = service.open_check(user_id, num_guests=2, table_num=12)
"""

from .activity_log_service import ActivityLogService
from .check_service import CheckService, ensure_editable
from .check_totals import CheckTotals, compute_totals, recalculate
from .modifier_service import ModifierService
from .order_service import OrderService
from .payment_service import PaymentService
from .settlement_service import SettlementService
from .staff_service import StaffService

__all__ = [
    # Checks
    "CheckService",
    "ensure_editable",
    "SettlementService",
    # Totals
    "CheckTotals",
    "compute_totals",
    "recalculate",
    # Orders and modifiers
    "OrderService",
    "ModifierService",
    # Payments
    "PaymentService",
    # Audit
    "ActivityLogService",
    # Staff
    "StaffService",
]
