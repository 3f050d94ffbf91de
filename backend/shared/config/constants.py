"""
Centralized constants for the backend application.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import Role, TenderType, LogEvent, at_least

    if at_least(ctx_role, Role.MANAGER):
        ...

    if payment.type == TenderType.CASH:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# Staff Roles
# =============================================================================


class Role(str, Enum):
    """Staff roles, declared from least to most privileged."""

    TRAINEE = "trainee"
    EMPLOYEE = "employee"
    COOK = "cook"
    HOST = "host"
    SERVER = "server"
    BARTENDER = "bartender"
    HEAD_SERVER = "head-server"
    BAR_MANAGER = "bar-manager"
    CHEF = "chef"
    MANAGER = "manager"
    OWNER = "owner"


ROLE_RANK: Final[dict[Role, int]] = {role: rank for rank, role in enumerate(Role)}


def at_least(role: Role | str, minimum: Role | str) -> bool:
    """
    True when `role` ranks at or above `minimum`.

    Unknown role strings never satisfy any minimum.
    """
    try:
        return ROLE_RANK[Role(role)] >= ROLE_RANK[Role(minimum)]
    except ValueError:
        return False


# =============================================================================
# Tenders
# =============================================================================


class TenderType(str, Enum):
    """Payment methods accepted at the register."""

    CASH = "Cash"
    MASTER_CARD = "MC"
    VISA = "Visa"
    AMERICAN_EXPRESS = "Amex"
    DISCOVER = "Disc"
    GOOGLE_PAY = "Google"
    APPLE_PAY = "Apple"
    VENMO = "Venmo"


# =============================================================================
# Production destinations
# =============================================================================


class DestinationName:
    """Terminal/printer destinations an item routes to."""

    KITCHEN_HOT: Final[str] = "Kitchen-Hot"
    KITCHEN_COLD: Final[str] = "Kitchen-Cold"
    BAR: Final[str] = "Bar"
    NO_SEND: Final[str] = "No-Send"

    ALL: Final[list[str]] = [KITCHEN_HOT, KITCHEN_COLD, BAR, NO_SEND]


# =============================================================================
# Activity log events
# =============================================================================


class LogEvent(str, Enum):
    """Events recorded in the activity log."""

    CLOCK_IN = "clock-in"
    CLOCK_OUT = "clock-out"
    CASH_OUT = "cash-out"
    DECLARE_CASH_TIPS = "declare-cash-tips"
    OPEN_SHIFT = "open-shift"
    CLOSE_SHIFT = "close-shift"
    OPEN_DAY = "open-day"
    CLOSE_DAY = "close-day"
    DISCOUNT_ITEM = "discount-item"
    DISCOUNT_CHECK = "discount-check"
    CREATE_ITEM = "create-item"
    UPDATE_ITEM = "update-item"
    DELETE_ITEM_ORDERED = "delete-item-ordered"
    VOID_ITEM = "void-item"
    VOID_CHECK = "void-check"


class EntityKind(str, Enum):
    """What an activity log entity_id points at."""

    CHECK = "check"
    ORDERED_ITEM = "ordered_item"
    ITEM = "item"
    NONE = "none"


EVENT_ENTITY_KIND: Final[dict[LogEvent, EntityKind]] = {
    LogEvent.CLOCK_IN: EntityKind.NONE,
    LogEvent.CLOCK_OUT: EntityKind.NONE,
    LogEvent.CASH_OUT: EntityKind.NONE,
    LogEvent.DECLARE_CASH_TIPS: EntityKind.NONE,
    LogEvent.OPEN_SHIFT: EntityKind.NONE,
    LogEvent.CLOSE_SHIFT: EntityKind.NONE,
    LogEvent.OPEN_DAY: EntityKind.NONE,
    LogEvent.CLOSE_DAY: EntityKind.NONE,
    LogEvent.DISCOUNT_ITEM: EntityKind.ORDERED_ITEM,
    LogEvent.DISCOUNT_CHECK: EntityKind.CHECK,
    LogEvent.CREATE_ITEM: EntityKind.ITEM,
    LogEvent.UPDATE_ITEM: EntityKind.ITEM,
    LogEvent.DELETE_ITEM_ORDERED: EntityKind.ORDERED_ITEM,
    LogEvent.VOID_ITEM: EntityKind.ORDERED_ITEM,
    LogEvent.VOID_CHECK: EntityKind.CHECK,
}


# =============================================================================
# Entity Status Constants
# =============================================================================


class CheckStatus:
    """Derived check status. VOID wins over every other state."""

    OPEN: Final[str] = "OPEN"
    PRINTED: Final[str] = "PRINTED"
    CLOSED: Final[str] = "CLOSED"
    VOID: Final[str] = "VOID"

    EDITABLE: Final[list[str]] = [OPEN, PRINTED]


FIREABLE_COURSES: Final[tuple[int, ...]] = (2, 3)


# =============================================================================
# Validation Limits
# =============================================================================


class Limits:
    """Validation limits."""

    MAX_NAME_LENGTH: Final[int] = 100
    MIN_PASSWORD_LENGTH: Final[int] = 8
    MAX_CUSTOMER_LENGTH: Final[int] = 50
    MAX_NOTE_LENGTH: Final[int] = 255
    MAX_SEARCH_TERM_LENGTH: Final[int] = 100

    # Pagination defaults
    DEFAULT_PAGE_SIZE: Final[int] = 100
    MAX_PAGE_SIZE: Final[int] = 500

    # Check limits
    MAX_GUESTS: Final[int] = 99
    MAX_SEAT_NUM: Final[int] = 99
    MAX_COURSE_NUM: Final[int] = 9
    MAX_ITEMS_PER_ORDER: Final[int] = 100

    # Money
    BPS_DENOMINATOR: Final[int] = 10_000


# =============================================================================
# Error Messages
# =============================================================================


class ErrorMessages:
    """Standardized error messages."""

    NOT_AUTHENTICATED: Final[str] = "Not authenticated"
    INVALID_TOKEN: Final[str] = "Invalid token"
    TOKEN_EXPIRED: Final[str] = "Token expired"
    INVALID_CREDENTIALS: Final[str] = "Invalid username or password"
    EMPTY_PATCH: Final[str] = "No data provided"
