"""
User lifecycle service: creation, visibility-filtered reads, updates, and
the soft-delete state machine.

Business rules enforced here:
- Admins see soft-deleted users; every other role sees active users only.
  A user hidden by that rule is reported exactly like a missing one.
- Rows are never physically removed: Active --remove--> Disabled
  --restore--> Active, each transition stamped with the acting user.
- Passwords are stored hashed. The plaintext (supplied or generated) is
  returned once, by create, and nowhere else.
- Every write clears the response cache after it is committed.
"""
import math
import sqlite3
from typing import Optional
import logging

from accounts.core.cache import ResponseCache
from accounts.core.exceptions import Conflict, DuplicateFieldError, NotFound, handle_exception
from accounts.core.passwords import generate_password, hash_password
from accounts.core.policy import visibility_filter
from accounts.models.user import User
from accounts.repositories.user_repository import UserRepository
from accounts.schemas.user import (
    CreatedUserResponse,
    CurrentUser,
    ListMeta,
    Pagination,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserSummaryResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

CONTEXT = "UserService"


class UserService:
    def __init__(self, conn: sqlite3.Connection, cache: ResponseCache) -> None:
        logger.trace("Initializing UserService")
        self._conn = conn
        self._repo = UserRepository(conn)
        self._cache = cache

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, data: UserCreate) -> CreatedUserResponse:
        """
        Create a user. When no password is supplied a random one is
        generated; either way the plaintext comes back in the response.
        """
        logger.info(
            "Creating user username=%s email=%s roles=%s created_by=%s",
            data.username,
            data.email,
            [role.value for role in data.roles],
            data.created_by_id,
        )
        try:
            plain_password = data.password or generate_password()
            user = self._repo.create(
                username=data.username,
                email=data.email,
                hashed_password=hash_password(plain_password),
                roles=data.roles,
                created_by_id=data.created_by_id,
            )
            self._commit_and_invalidate()
        except DuplicateFieldError as exc:
            raise Conflict(f"User with this {exc.field} already exists") from exc
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error creating the user")

        logger.info("User created id=%s", user.id)
        return CreatedUserResponse(
            **UserResponse.model_validate(user).model_dump(),
            password=plain_password,
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find_all(self, pagination: Pagination, current_user: CurrentUser) -> UserListResponse:
        """Return one page of visible users, newest first, with page metadata."""
        logger.info(
            "Listing users page=%s limit=%s requested_by=%s",
            pagination.page,
            pagination.limit,
            current_user.id,
        )
        visibility = visibility_filter(current_user.roles)
        users = self._repo.find_page(pagination.offset, pagination.limit, visibility)
        total = self._repo.count(visibility)
        return UserListResponse(
            data=[UserResponse.model_validate(u) for u in users],
            meta=ListMeta(
                total=total,
                page=pagination.page,
                last_page=math.ceil(total / pagination.limit),
            ),
        )

    def find_one(self, user_id: str, current_user: CurrentUser) -> UserResponse:
        return UserResponse.model_validate(self._get_visible(user_id, current_user))

    def find_by_username(self, username: str, current_user: CurrentUser) -> UserResponse:
        logger.info("Fetching user username=%s requested_by=%s", username, current_user.id)
        user = self._repo.get_by_username(username, visibility_filter(current_user.roles))
        if user is None:
            logger.warning("User username=%s not found", username)
            raise NotFound(f"User with username {username} not found")
        return UserResponse.model_validate(user)

    def find_one_with_summary(self, user_id: str, current_user: CurrentUser) -> UserSummaryResponse:
        logger.info("Fetching user summary id=%s requested_by=%s", user_id, current_user.id)
        summary = self._repo.get_summary(user_id, visibility_filter(current_user.roles))
        if summary is None:
            logger.warning("User id=%s not found", user_id)
            raise NotFound(f"User with id {user_id} not found")
        return UserSummaryResponse.model_validate(summary)

    def find_by_ids(self, user_ids: list[str], current_user: CurrentUser) -> list[UserSummaryResponse]:
        """
        Batch summary lookup for internal callers. Unlike the other reads,
        no visibility filter is applied: soft-deleted users are included.
        """
        logger.info("Fetching user summaries ids=%s requested_by=%s", user_ids, current_user.id)
        summaries = self._repo.get_summaries_by_ids(user_ids)
        return [UserSummaryResponse.model_validate(s) for s in summaries]

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update(self, data: UserUpdate, current_user: CurrentUser) -> UserResponse:
        logger.info("Updating user id=%s requested_by=%s", data.id, current_user.id)
        try:
            self._get_visible(data.id, current_user)

            changes = data.model_dump(exclude={"id"}, exclude_none=True)
            password = changes.pop("password", None)
            if password is not None:
                changes["hashed_password"] = hash_password(password)

            user = self._repo.update(data.id, updated_by_id=current_user.id, **changes)
            self._commit_and_invalidate()
        except DuplicateFieldError as exc:
            raise Conflict(f"User with this {exc.field} already exists") from exc
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error updating the user")

        logger.info("User updated id=%s fields=%s", data.id, sorted(changes))
        return UserResponse.model_validate(user)

    # ------------------------------------------------------------------
    # Soft delete / restore
    # ------------------------------------------------------------------

    def remove(self, user_id: str, current_user: CurrentUser) -> UserResponse:
        """Disable an active user, recording who did it."""
        logger.info("Removing user id=%s requested_by=%s", user_id, current_user.id)
        try:
            target = self._get_visible(user_id, current_user)
            if target.is_deleted:
                logger.warning("User id=%s is already disabled", user_id)
                raise Conflict(f"User with id {user_id} is already disabled")

            user = self._repo.soft_delete(user_id, deleted_by_id=current_user.id)
            self._commit_and_invalidate()
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error removing the user")

        logger.info("User removed id=%s", user_id)
        return UserResponse.model_validate(user)

    def restore(self, user_id: str, current_user: CurrentUser) -> UserResponse:
        """Re-enable a disabled user, recording who did it."""
        logger.info("Restoring user id=%s requested_by=%s", user_id, current_user.id)
        try:
            target = self._get_visible(user_id, current_user)
            if not target.is_deleted:
                logger.warning("User id=%s is already enabled", user_id)
                raise Conflict(f"User with id {user_id} is already enabled")

            user = self._repo.restore(user_id, restored_by_id=current_user.id)
            self._commit_and_invalidate()
        except Exception as exc:
            handle_exception(exc, CONTEXT, "Error restoring the user")

        logger.info("User restored id=%s", user_id)
        return UserResponse.model_validate(user)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_visible(self, user_id: str, current_user: CurrentUser) -> User:
        """Return the user if the caller may see it, else raise NotFound."""
        logger.info("Fetching user id=%s requested_by=%s", user_id, current_user.id)
        user: Optional[User] = self._repo.get_by_id(user_id, visibility_filter(current_user.roles))
        if user is None:
            logger.warning("User id=%s not found", user_id)
            raise NotFound(f"User with id {user_id} not found")
        return user

    def _commit_and_invalidate(self) -> None:
        # Commit first: a read racing the clear must not re-cache the old row.
        self._conn.commit()
        self._cache.invalidate_all()
