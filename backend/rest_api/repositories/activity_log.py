"""
Activity Log Repository - read side of the audit trail.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, select

from rest_api.models import ActivityLog
from shared.config.constants import LogEvent
from .base import BaseRepository, RepositoryFilters, date_range


@dataclass
class ActivityLogFilters(RepositoryFilters):
    """Filters for log entries. All time bounds apply to created_at."""

    user_id: int | None = None
    event: LogEvent | None = None
    entity_id: int | None = None
    before: datetime | None = None
    after: datetime | None = None
    start: datetime | None = None
    end: datetime | None = None


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for ActivityLog entries."""

    @property
    def model(self) -> type[ActivityLog]:
        return ActivityLog

    def _base_query(self) -> Select:
        return select(ActivityLog)

    def _ordering(self) -> list[Any]:
        return [ActivityLog.created_at, ActivityLog.id]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, ActivityLogFilters):
            filters = ActivityLogFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.user_id is not None:
            query = query.where(ActivityLog.user_id == filters.user_id)
        if filters.event is not None:
            query = query.where(ActivityLog.event == filters.event)
        if filters.entity_id is not None:
            query = query.where(ActivityLog.entity_id == filters.entity_id)
        if filters.before is not None:
            query = query.where(ActivityLog.created_at < filters.before)
        if filters.after is not None:
            query = query.where(ActivityLog.created_at > filters.after)

        return date_range(query, ActivityLog.created_at, filters.start, filters.end)
