"""
Utilities module: Exceptions, validators, money and clock helpers.
"""

from shared.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
)
from shared.utils.validators import (
    escape_like_pattern,
    sanitize_search_term,
    clean_text,
)
from shared.utils.money import apply_bps, format_cents
from shared.utils.clock import utcnow, as_utc

__all__ = [
    # exceptions
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    # validators
    "escape_like_pattern",
    "sanitize_search_term",
    "clean_text",
    # money
    "apply_bps",
    "format_cents",
    # clock
    "utcnow",
    "as_utc",
]
