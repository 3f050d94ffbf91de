"""
User Repository - staff listing for managers.
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Select, or_, select

from rest_api.models import User
from shared.config.constants import Role
from shared.utils.validators import escape_like_pattern, sanitize_search_term
from .base import BaseRepository, RepositoryFilters


@dataclass
class UserFilters(RepositoryFilters):
    """Filters for staff. `name` matches username, first, last or display name."""

    role: Role | None = None
    is_active: bool | None = True
    name: str | None = None


class UserRepository(BaseRepository[User]):

    @property
    def model(self) -> type[User]:
        return User

    def _base_query(self) -> Select:
        return select(User)

    def _ordering(self) -> list[Any]:
        return [User.username]

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        if not isinstance(filters, UserFilters):
            filters = UserFilters(limit=filters.limit, offset=filters.offset, desc=filters.desc)

        if filters.role is not None:
            query = query.where(User.role == filters.role)
        if filters.is_active is not None:
            query = query.where(User.is_active.is_(filters.is_active))

        term = sanitize_search_term(filters.name)
        if term:
            pattern = f"%{escape_like_pattern(term)}%"
            query = query.where(
                or_(
                    User.username.ilike(pattern, escape="\\"),
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                    User.display_name.ilike(pattern, escape="\\"),
                )
            )
        return query

    def find_by_username(self, username: str) -> User | None:
        return self._db.scalar(select(User).where(User.username == username))
