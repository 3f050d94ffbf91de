"""
Base Repository implementation.
Provides common read patterns: filtered listing with pagination, lookup by id.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select
from sqlalchemy.orm import Session

from shared.config.constants import Limits
from shared.utils.clock import as_utc


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    # Pagination
    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    # Reverse the default ordering
    desc: bool = False

    def __post_init__(self):
        """Validate and normalize filters."""
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)
        # Compare in UTC whatever offset the client sent
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                setattr(self, f.name, as_utc(value))


def date_range(query: Select, column: Any, start: datetime | None, end: datetime | None) -> Select:
    """Inclusive [start, end] on a timestamp column; either bound optional."""
    if start is not None:
        query = query.where(column >= start)
    if end is not None:
        query = query.where(column <= end)
    return query


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses must implement:
    - model: the SQLAlchemy model class
    - _base_query(): base select with joins/eager loading
    - _apply_filters(): entity-specific where clauses
    - _ordering(): default ORDER BY columns
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    @abstractmethod
    def _base_query(self) -> Select:
        ...

    @abstractmethod
    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        """Apply entity-specific filters to query."""
        ...

    @abstractmethod
    def _ordering(self) -> list[Any]:
        ...

    def _ordered(self, query: Select, filters: RepositoryFilters) -> Select:
        columns = self._ordering()
        if filters.desc:
            columns = [c.desc() for c in columns]
        return query.order_by(*columns)

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        """
        Find all entities matching filters, in the default order.
        """
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = self._ordered(query, filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int) -> ModelT | None:
        return self._db.get(self.model, entity_id)
