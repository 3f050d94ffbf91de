"""
Activity Log Model.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import EntityKind, LogEvent
from shared.utils.clock import utcnow
from .base import Base, IdType, enum_type


class ActivityLog(Base):
    """
    Append-only record of lifecycle events (clock events, voids, discounts).

    entity_kind says which table entity_id points at; it is derived from
    the event when the row is written, so readers never have to guess.
    """

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(IdType, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        IdType, ForeignKey("app_user.id"), nullable=False, index=True
    )
    event: Mapped[LogEvent] = mapped_column(enum_type(LogEvent, "log_event"), nullable=False, index=True)
    entity_kind: Mapped[EntityKind] = mapped_column(
        enum_type(EntityKind, "log_entity_kind"), nullable=False
    )
    entity_id: Mapped[Optional[int]] = mapped_column(IdType)
    declared_tips_cents: Mapped[Optional[int]] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    __table_args__ = (
        Index("ix_activity_log_entity", "entity_kind", "entity_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ActivityLog(id={self.id}, user={self.user_id}, event={self.event.value}, "
            f"{self.entity_kind.value}={self.entity_id})>"
        )
