"""
Activity Log Domain Service.

Append-only audit trail. Other services call record() inside their own
transaction so a void and its log entry commit together; the HTTP layer
calls append() for standalone events (clock-in, close-day, ...).
"""

from typing import Sequence

from sqlalchemy.orm import Session

from rest_api.models import ActivityLog, Check, Item, OrderedItem
from rest_api.repositories import ActivityLogFilters, ActivityLogRepository
from shared.config.constants import EVENT_ENTITY_KIND, EntityKind, LogEvent
from shared.config.logging import get_logger
from shared.infrastructure.db import transaction
from shared.utils.exceptions import MissingReferenceError, NotFoundError, ValidationError

logger = get_logger(__name__)

_ENTITY_MODELS = {
    EntityKind.CHECK: (Check, "Check"),
    EntityKind.ORDERED_ITEM: (OrderedItem, "Ordered item"),
    EntityKind.ITEM: (Item, "Item"),
}


class ActivityLogService:
    """Domain service for the activity log."""

    def __init__(self, db: Session):
        self._db = db
        self._repo = ActivityLogRepository(db)

    def record(
        self,
        user_id: int,
        event: LogEvent,
        entity_id: int | None = None,
        declared_tips_cents: int | None = None,
    ) -> ActivityLog:
        """
        Validate and stage a log entry in the caller's transaction.

        Raises:
            ValidationError: entity_id missing/unexpected for the event, or
                declared tips on an event that does not carry them.
            MissingReferenceError: the referenced entity does not exist.
        """
        event = LogEvent(event)
        kind = EVENT_ENTITY_KIND[event]

        if kind is EntityKind.NONE:
            if entity_id is not None:
                raise ValidationError(f"{event.value} does not reference an entity", event=event.value)
        else:
            if entity_id is None:
                raise ValidationError(f"{event.value} requires a {kind.value} id", event=event.value)
            model, label = _ENTITY_MODELS[kind]
            if self._db.get(model, entity_id) is None:
                raise MissingReferenceError(label, entity_id, event=event.value)

        if event is LogEvent.DECLARE_CASH_TIPS:
            if declared_tips_cents is None:
                raise ValidationError("declare-cash-tips requires declared_tips_cents")
        elif declared_tips_cents is not None:
            raise ValidationError(f"{event.value} does not carry declared tips", event=event.value)

        entry = ActivityLog(
            user_id=user_id,
            event=event,
            entity_kind=kind,
            entity_id=entity_id,
            declared_tips_cents=declared_tips_cents,
        )
        self._db.add(entry)
        return entry

    def append(
        self,
        user_id: int,
        event: LogEvent,
        entity_id: int | None = None,
        declared_tips_cents: int | None = None,
    ) -> ActivityLog:
        """Record a standalone event and commit it."""
        with transaction(self._db):
            entry = self.record(user_id, event, entity_id, declared_tips_cents)
        self._db.refresh(entry)

        logger.info(
            "Activity logged",
            log_id=entry.id,
            user_id=user_id,
            event=entry.event.value,
            entity_id=entity_id,
        )
        return entry

    def find(self, filters: ActivityLogFilters | None = None) -> Sequence[ActivityLog]:
        return self._repo.find_all(filters)

    def get(self, log_id: int) -> ActivityLog:
        entry = self._repo.find_by_id(log_id)
        if entry is None:
            raise NotFoundError("Log entry", log_id)
        return entry
