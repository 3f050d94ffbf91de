"""
Base class, id column type and mixins for all SQLAlchemy ORM models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Enum as SQLEnum, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.utils.clock import utcnow

# BIGINT in PostgreSQL; plain INTEGER on SQLite so ROWID autoincrement works
IdType = BigInteger().with_variant(Integer(), "sqlite")


def enum_type(enum_cls: type[Enum], name: str) -> SQLEnum:
    """Column type storing an Enum by its value ("Visa"), not its member name."""
    return SQLEnum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """
    created_at / updated_at set from the application clock.

    Financial rows (checks, ordered items, payments) are never deleted;
    they carry their own is_void flag instead of a soft-delete field.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )


class ActiveMixin:
    """
    Soft-disable flag for catalog and staff rows.

    Inactive catalog items cannot be ordered; inactive users cannot log in.
    Rows already referenced by checks keep working for reads.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def deactivate(self) -> None:
        self.is_active = False

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        id_val = getattr(self, "id", None)
        active = "active" if self.is_active else "inactive"
        return f"<{class_name}(id={id_val}, {active})>"
