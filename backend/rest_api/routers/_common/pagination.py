"""
Standardized pagination for list endpoints.

Usage:
    from rest_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/checks")
    def list_checks(
        pagination: Pagination = Depends(get_pagination),
        db: Session = Depends(get_db),
    ):
        filters = CheckFilters(**pagination.as_filters(), is_open=True)
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Query

from shared.config.constants import Limits


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        limit: Maximum items per page (1 to MAX_PAGE_SIZE)
        offset: Number of items to skip
        desc: Reverse the endpoint's default ordering
    """

    limit: int
    offset: int
    desc: bool = False

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)

    def as_filters(self) -> dict[str, Any]:
        """Keyword arguments for a RepositoryFilters subclass."""
        return {"limit": self.limit, "offset": self.offset, "desc": self.desc}


def get_pagination(
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of items to skip",
    ),
    desc: bool = Query(
        default=False,
        description="Newest/last first instead of the default order",
    ),
) -> Pagination:
    """FastAPI dependency for pagination."""
    return Pagination(limit=limit, offset=offset, desc=desc)
