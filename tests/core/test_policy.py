"""Tests for role-based visibility."""
from datetime import datetime, timezone

import pytest

from accounts.core.policy import ACTIVE_ONLY, ALL_RECORDS, is_admin, visibility_filter
from accounts.models.user import User, UserRole


def _user(deleted: bool) -> User:
    now = datetime.now(tz=timezone.utc)
    return User(
        id="b6a1d0c2-0000-4000-8000-000000000001",
        username="someone",
        email="someone@acme.io",
        hashed_password="x",
        roles=[UserRole.USER],
        created_at=now,
        updated_at=now,
        deleted_at=now if deleted else None,
    )


class TestVisibilityFilter:
    @pytest.mark.parametrize(
        "roles",
        [[UserRole.ADMIN], [UserRole.USER, UserRole.ADMIN], ["Admin", "Moderator"]],
    )
    def test__admin_roles__see_everything(self, roles) -> None:
        visibility = visibility_filter(roles)

        assert visibility is ALL_RECORDS
        assert visibility(_user(deleted=True))
        assert visibility(_user(deleted=False))

    @pytest.mark.parametrize(
        "roles",
        [[], [UserRole.USER], [UserRole.MODERATOR], [UserRole.GUEST], [UserRole.MODERATOR, UserRole.GUEST]],
    )
    def test__non_admin_roles__see_active_only(self, roles) -> None:
        visibility = visibility_filter(roles)

        assert visibility is ACTIVE_ONLY
        assert visibility(_user(deleted=False))
        assert not visibility(_user(deleted=True))

    def test__sql__matches_predicate(self) -> None:
        assert ALL_RECORDS.sql("u") == "1 = 1"
        assert ACTIVE_ONLY.sql("u") == "u.deleted_at IS NULL"
        assert ACTIVE_ONLY.sql() == "deleted_at IS NULL"

    def test__scope__names_the_visible_set(self) -> None:
        assert ALL_RECORDS.scope == "all"
        assert ACTIVE_ONLY.scope == "active"

    def test__is_admin__rejects_unknown_roles(self) -> None:
        with pytest.raises(ValueError):
            is_admin(["Superuser"])
