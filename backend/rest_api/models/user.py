"""
Staff user model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Role
from .base import ActiveMixin, Base, IdType, TimestampMixin, enum_type

if TYPE_CHECKING:
    from .billing import Check


class User(ActiveMixin, TimestampMixin, Base):
    """
    A staff member. The role is a single ordered level (trainee .. owner);
    authorization compares levels with at_least().
    """

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    username: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(Text)
    role: Mapped[Role] = mapped_column(enum_type(Role, "staff_role"), nullable=False)

    # Relationships
    checks: Mapped[list["Check"]] = relationship(back_populates="user")

    @property
    def name(self) -> str:
        return self.display_name or f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role={self.role.value})>"
