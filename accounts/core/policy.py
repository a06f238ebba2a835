"""
Role-based visibility of user records.

Admins see every record, soft-deleted ones included. Every other role set
(User, Moderator, Guest, or none) sees active records only. The same filter
drives the SQL of each filtered read and the in-memory check, so the two
can never disagree.
"""
from dataclasses import dataclass
from typing import Iterable, Optional

from accounts.models.user import User, UserRole


@dataclass(frozen=True)
class VisibilityFilter:
    include_deleted: bool

    @property
    def scope(self) -> str:
        """Short name of the visible set, used in cache keys."""
        return "all" if self.include_deleted else "active"

    def sql(self, alias: Optional[str] = None) -> str:
        """SQL condition for this filter; ``1 = 1`` when nothing is hidden."""
        if self.include_deleted:
            return "1 = 1"
        column = f"{alias}.deleted_at" if alias else "deleted_at"
        return f"{column} IS NULL"

    def __call__(self, user: User) -> bool:
        return self.include_deleted or user.deleted_at is None


ALL_RECORDS = VisibilityFilter(include_deleted=True)
ACTIVE_ONLY = VisibilityFilter(include_deleted=False)


def is_admin(roles: Iterable) -> bool:
    return any(UserRole(role) == UserRole.ADMIN for role in roles)


def visibility_filter(roles: Iterable) -> VisibilityFilter:
    """Return the visibility filter for a caller holding *roles*."""
    return ALL_RECORDS if is_admin(roles) else ACTIVE_ONLY
