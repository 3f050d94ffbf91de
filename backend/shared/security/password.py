"""
Password hashing utilities using bcrypt.
"""

import bcrypt

from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Example:
        hashed = hash_password("mypassword123")
        # Returns something like: $2b$12$...
    """
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Anything that is not a bcrypt hash never verifies.
    """
    if not hashed_password or not hashed_password.startswith(_BCRYPT_PREFIXES):
        logger.warning("Rejected non-bcrypt password hash")
        return False

    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def needs_rehash(hashed_password: str) -> bool:
    """True when the stored hash uses a different cost than configured."""
    if not hashed_password.startswith(_BCRYPT_PREFIXES):
        return True
    # Format: $2b$<cost>$<salt+hash>
    try:
        cost = int(hashed_password.split("$")[2])
    except (IndexError, ValueError):
        return True
    return cost != settings.bcrypt_rounds
