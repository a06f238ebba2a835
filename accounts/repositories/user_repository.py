"""
Repository layer for User persistence.
All SQL for the ``user`` table lives here.

Full-record reads resolve the created_by/updated_by/deleted_by references
one level deep into UserSummary projections through LEFT JOINs; the
referenced users' own audit links are never loaded.
"""
import sqlite3
import json
import uuid
from typing import Iterable, Optional
from datetime import datetime, timezone
import logging

from accounts.core.exceptions import DuplicateFieldError
from accounts.core.logging_config import log_store_call
from accounts.core.policy import ALL_RECORDS, VisibilityFilter
from accounts.models.user import User, UserRole, UserSummary

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ("username", "email")

_AUDIT_LINKS = ("created_by", "updated_by", "deleted_by")

_SELECT_WITH_AUDIT = (
    "SELECT u.*, "
    + ", ".join(
        f"{link}_user.id AS {link}__id, "
        f"{link}_user.username AS {link}__username, "
        f"{link}_user.email AS {link}__email"
        for link in _AUDIT_LINKS
    )
    + ' FROM "user" u '
    + " ".join(
        f'LEFT JOIN "user" {link}_user ON {link}_user.id = u.{link}' for link in _AUDIT_LINKS
    )
)

# Column name for each writable attribute.
_WRITABLE_COLUMNS = {
    "username": "username",
    "email": "email",
    "hashed_password": "password",
    "roles": "roles",
    "deleted_at": "deleted_at",
    "updated_by_id": "updated_by",
    "deleted_by_id": "deleted_by",
}


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def _encode_roles(roles: Iterable[UserRole]) -> str:
    return json.dumps([UserRole(role).value for role in roles])


def _raise_integrity_error(exc: sqlite3.IntegrityError) -> None:
    """Translate unique violations on username/email into DuplicateFieldError."""
    message = str(exc)
    if "UNIQUE constraint failed" in message:
        for field in UNIQUE_FIELDS:
            if f".{field}" in message:
                logger.warning("Unique constraint violated on field=%s", field)
                raise DuplicateFieldError(field) from exc
    raise exc


class UserRepository:
    """Data access layer for user records."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        logger.trace("Initializing UserRepository")
        self._conn = conn

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def _fetch_one(self, where: str, params: tuple, visibility: VisibilityFilter) -> Optional[User]:
        row = self._conn.execute(
            f"{_SELECT_WITH_AUDIT} WHERE {where} AND {visibility.sql('u')}",
            params,
        ).fetchone()
        return User.from_row(row) if row else None

    @log_store_call
    def get_by_id(self, user_id: str, visibility: VisibilityFilter = ALL_RECORDS) -> Optional[User]:
        """Return the user with *user_id* if visible under *visibility*."""
        logger.trace("Fetching user by id=%s", user_id)
        return self._fetch_one("u.id = ?", (user_id,), visibility)

    @log_store_call
    def get_by_username(self, username: str, visibility: VisibilityFilter = ALL_RECORDS) -> Optional[User]:
        """Return the user with *username* if visible under *visibility*."""
        logger.trace("Fetching user by username=%s", username)
        return self._fetch_one("u.username = ?", (username,), visibility)

    @log_store_call
    def get_summary(self, user_id: str, visibility: VisibilityFilter = ALL_RECORDS) -> Optional[UserSummary]:
        """Return only id/username/email of a visible user."""
        logger.trace("Fetching user summary id=%s", user_id)
        row = self._conn.execute(
            f'SELECT id, username, email FROM "user" WHERE id = ? AND {visibility.sql()}',
            (user_id,),
        ).fetchone()
        return UserSummary.from_row(row) if row else None

    @log_store_call
    def get_summaries_by_ids(self, user_ids: list[str]) -> list[UserSummary]:
        """Return summaries for every existing id in *user_ids*, deleted or not."""
        if not user_ids:
            return []
        placeholders = ", ".join("?" for _ in user_ids)
        rows = self._conn.execute(
            f'SELECT id, username, email FROM "user" WHERE id IN ({placeholders}) '
            "ORDER BY created_at DESC, rowid DESC",
            tuple(user_ids),
        ).fetchall()
        return [UserSummary.from_row(r) for r in rows]

    @log_store_call
    def find_page(self, offset: int, limit: int, visibility: VisibilityFilter) -> list[User]:
        """Return one page of visible users, newest-created first."""
        logger.trace("Listing users offset=%s limit=%s scope=%s", offset, limit, visibility.scope)
        rows = self._conn.execute(
            f"{_SELECT_WITH_AUDIT} WHERE {visibility.sql('u')} "
            "ORDER BY u.created_at DESC, u.rowid DESC LIMIT ? OFFSET ?",
            (limit, offset),
        ).fetchall()
        return [User.from_row(r) for r in rows]

    @log_store_call
    def count(self, visibility: VisibilityFilter) -> int:
        row = self._conn.execute(
            f'SELECT COUNT(*) AS total FROM "user" WHERE {visibility.sql()}'
        ).fetchone()
        return row["total"]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    @log_store_call
    def create(
        self,
        *,
        username: str,
        email: str,
        hashed_password: str,
        roles: Iterable[UserRole],
        created_by_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> User:
        """Insert a new user row and return it with audit links resolved."""
        user_id = user_id or str(uuid.uuid4())
        now = _now()
        logger.info("Creating user record username=%s", username)
        try:
            self._conn.execute(
                """
                INSERT INTO "user"
                    (id, username, email, password, roles, created_at, updated_at, created_by)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    username,
                    email,
                    hashed_password,
                    _encode_roles(roles),
                    now,
                    now,
                    created_by_id,
                ),
            )
        except sqlite3.IntegrityError as exc:
            _raise_integrity_error(exc)
        return self.get_by_id(user_id)  # type: ignore[return-value]

    @log_store_call
    def update(self, user_id: str, **fields) -> Optional[User]:
        """
        Update the given attributes (see _WRITABLE_COLUMNS) in one statement
        and return the updated row. ``None`` values clear a column.
        """
        unknown = set(fields) - set(_WRITABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        values: dict = {}
        for attr, value in fields.items():
            if attr == "roles" and value is not None:
                value = _encode_roles(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            values[_WRITABLE_COLUMNS[attr]] = value
        values["updated_at"] = _now()

        logger.info("Updating user record id=%s columns=%s", user_id, sorted(values))
        set_clause = ", ".join(f"{col} = ?" for col in values)
        try:
            self._conn.execute(
                f'UPDATE "user" SET {set_clause} WHERE id = ?',
                list(values.values()) + [user_id],
            )
        except sqlite3.IntegrityError as exc:
            _raise_integrity_error(exc)
        return self.get_by_id(user_id)

    def soft_delete(self, user_id: str, deleted_by_id: str) -> Optional[User]:
        """Mark the user as deleted; the row is never physically removed."""
        logger.info("Soft deleting user id=%s by=%s", user_id, deleted_by_id)
        return self.update(
            user_id,
            deleted_at=datetime.now(tz=timezone.utc),
            deleted_by_id=deleted_by_id,
        )

    def restore(self, user_id: str, restored_by_id: str) -> Optional[User]:
        """Clear the deletion marker and record who restored the user."""
        logger.info("Restoring user id=%s by=%s", user_id, restored_by_id)
        return self.update(
            user_id,
            deleted_at=None,
            deleted_by_id=None,
            updated_by_id=restored_by_id,
        )
