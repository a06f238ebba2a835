"""
Domain model (plain Python dataclasses) representing rows of the ``user``
table, as used across the repository and service layers.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import json
import logging

import accounts.core.logging_config  # noqa: F401 - registers Logger.trace

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    USER = "User"
    ADMIN = "Admin"
    MODERATOR = "Moderator"
    GUEST = "Guest"


def _parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(raw) if raw else None


@dataclass
class UserSummary:
    """Minimal projection used for audit links; carries no sensitive data."""

    id: str
    username: str
    email: str

    @classmethod
    def from_row(cls, row, prefix: str = "") -> Optional["UserSummary"]:
        """
        Build a summary from *row*, reading ``{prefix}id`` etc.
        Returns None when the joined row is absent (LEFT JOIN miss).
        """
        if row[f"{prefix}id"] is None:
            return None
        return cls(
            id=row[f"{prefix}id"],
            username=row[f"{prefix}username"],
            email=row[f"{prefix}email"],
        )


@dataclass
class User:
    id: str
    username: str
    email: str
    hashed_password: str
    roles: list[UserRole]
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    created_by_id: Optional[str] = None
    updated_by_id: Optional[str] = None
    deleted_by_id: Optional[str] = None
    created_by: Optional[UserSummary] = field(default=None, repr=False)
    updated_by: Optional[UserSummary] = field(default=None, repr=False)
    deleted_by: Optional[UserSummary] = field(default=None, repr=False)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_row(cls, row) -> "User":
        """
        Build a User from a sqlite3.Row. Audit links are resolved when the
        row carries the ``created_by__*``/``updated_by__*``/``deleted_by__*``
        columns produced by the repository's joined select.
        """
        logger.trace("Hydrating User from database row")
        keys = row.keys()
        user = cls(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            hashed_password=row["password"],
            roles=[UserRole(value) for value in json.loads(row["roles"])],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            deleted_at=_parse_timestamp(row["deleted_at"]),
            created_by_id=row["created_by"],
            updated_by_id=row["updated_by"],
            deleted_by_id=row["deleted_by"],
        )
        if "created_by__id" in keys:
            user.created_by = UserSummary.from_row(row, "created_by__")
            user.updated_by = UserSummary.from_row(row, "updated_by__")
            user.deleted_by = UserSummary.from_row(row, "deleted_by__")
        return user
