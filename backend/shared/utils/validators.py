"""
Shared validators for input sanitization.
"""

import re


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in LIKE patterns.

    SQL LIKE uses % and _ as wildcards. Escaping them keeps a customer
    name like "50%_off" from matching every row.
    Pair with `.ilike(pattern, escape="\\\\")`.
    """
    if not value:
        return value

    # Escape the escape character first, then the wildcards
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def sanitize_search_term(term: str | None, max_length: int = 100) -> str:
    """
    Sanitize a search term for safe use in queries.

    Trims whitespace, limits length and strips control characters.
    """
    if not term:
        return ""

    term = term.strip()[:max_length]
    return re.sub(r"[\x00-\x1f\x7f-\x9f]", "", term)


def clean_text(value: str | None, max_length: int | None = None) -> str | None:
    """
    Trim free text. Blank input becomes None.

    Used for ordered item notes and check customer labels.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if max_length is not None:
        value = value[:max_length]
    return value
