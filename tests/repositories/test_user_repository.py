"""Tests for the user repository against a real SQLite database."""
import sqlite3
import uuid

import pytest

from accounts.core.exceptions import DuplicateFieldError
from accounts.core.policy import ACTIVE_ONLY, ALL_RECORDS
from accounts.models.user import UserRole
from accounts.repositories.user_repository import UserRepository


class TestCreate:
    def test__create__persists_row_with_defaults(self, repo: UserRepository) -> None:
        user = repo.create(
            username="alice",
            email="alice@acme.io",
            hashed_password="hash",
            roles=[UserRole.USER, UserRole.MODERATOR],
        )

        assert uuid.UUID(user.id)
        assert user.roles == [UserRole.USER, UserRole.MODERATOR]
        assert user.deleted_at is None
        assert user.created_at == user.updated_at
        assert user.created_by is None

    def test__create__resolves_creator_summary(self, repo: UserRepository, admin) -> None:
        user = repo.create(
            username="bob",
            email="bob@acme.io",
            hashed_password="hash",
            roles=[UserRole.USER],
            created_by_id=admin.id,
        )

        assert user.created_by_id == admin.id
        assert user.created_by.id == admin.id
        assert user.created_by.username == admin.username
        assert user.created_by.email == admin.email

    @pytest.mark.parametrize("field", ["username", "email"])
    def test__create__duplicate_unique_field_raises(self, repo: UserRepository, make_user, field) -> None:
        existing = make_user("carol")
        values = {"username": "other", "email": "other@acme.io"}
        values[field] = getattr(existing, field)

        with pytest.raises(DuplicateFieldError) as exc_info:
            repo.create(hashed_password="hash", roles=[UserRole.USER], **values)

        assert exc_info.value.field == field

    def test__create__duplicate_of_soft_deleted_user_still_conflicts(self, repo: UserRepository, make_user) -> None:
        gone = make_user("ghost", deleted=True)

        with pytest.raises(DuplicateFieldError):
            repo.create(
                username=gone.username,
                email="fresh@acme.io",
                hashed_password="hash",
                roles=[UserRole.USER],
            )

    def test__create__unknown_creator_violates_foreign_key(self, repo: UserRepository) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            repo.create(
                username="dave",
                email="dave@acme.io",
                hashed_password="hash",
                roles=[UserRole.USER],
                created_by_id=str(uuid.uuid4()),
            )


class TestReads:
    def test__get_by_id__honours_visibility(self, repo: UserRepository, make_user) -> None:
        gone = make_user("gone", deleted=True)

        assert repo.get_by_id(gone.id, ACTIVE_ONLY) is None
        assert repo.get_by_id(gone.id, ALL_RECORDS).id == gone.id

    def test__get_by_username__honours_visibility(self, repo: UserRepository, make_user) -> None:
        gone = make_user("gone", deleted=True)

        assert repo.get_by_username("gone", ACTIVE_ONLY) is None
        assert repo.get_by_username("gone", ALL_RECORDS).id == gone.id

    def test__get_summary__projects_three_fields(self, repo: UserRepository, make_user) -> None:
        user = make_user("erin")

        summary = repo.get_summary(user.id, ACTIVE_ONLY)

        assert (summary.id, summary.username, summary.email) == (user.id, "erin", "erin@acme.io")

    def test__get_summaries_by_ids__ignores_visibility_and_unknown_ids(self, repo: UserRepository, make_user) -> None:
        active = make_user("active_one")
        gone = make_user("gone_one", deleted=True)

        summaries = repo.get_summaries_by_ids([active.id, gone.id, str(uuid.uuid4())])

        assert {s.id for s in summaries} == {active.id, gone.id}

    def test__get_summaries_by_ids__empty_input(self, repo: UserRepository) -> None:
        assert repo.get_summaries_by_ids([]) == []

    def test__find_page__orders_newest_first(self, repo: UserRepository, make_user) -> None:
        names = [make_user(f"page_{i:02d}").username for i in range(5)]

        page = repo.find_page(0, 3, ALL_RECORDS)

        assert [u.username for u in page] == list(reversed(names))[:3]

    def test__count__honours_visibility(self, repo: UserRepository, make_user) -> None:
        make_user("a1")
        make_user("a2")
        make_user("d1", deleted=True)

        assert repo.count(ACTIVE_ONLY) == 2
        assert repo.count(ALL_RECORDS) == 3


class TestWrites:
    def test__update__changes_fields_and_timestamp(self, repo: UserRepository, make_user, admin) -> None:
        user = make_user("frank")

        updated = repo.update(user.id, email="frank@new.io", roles=[UserRole.GUEST], updated_by_id=admin.id)

        assert updated.email == "frank@new.io"
        assert updated.roles == [UserRole.GUEST]
        assert updated.updated_by.id == admin.id
        assert updated.updated_at > user.updated_at

    def test__update__rejects_unknown_fields(self, repo: UserRepository, make_user) -> None:
        user = make_user("gina")

        with pytest.raises(ValueError):
            repo.update(user.id, id="other")

    def test__update__duplicate_email_raises(self, repo: UserRepository, make_user) -> None:
        make_user("harry")
        ivy = make_user("ivy")

        with pytest.raises(DuplicateFieldError) as exc_info:
            repo.update(ivy.id, email="harry@acme.io")

        assert exc_info.value.field == "email"

    def test__soft_delete_then_restore__round_trips_markers(self, repo: UserRepository, make_user, admin) -> None:
        user = make_user("jack")

        deleted = repo.soft_delete(user.id, deleted_by_id=admin.id)
        assert deleted.deleted_at is not None
        assert deleted.deleted_by.id == admin.id

        restored = repo.restore(user.id, restored_by_id=admin.id)
        assert restored.deleted_at is None
        assert restored.deleted_by is None
        assert restored.updated_by.id == admin.id

    def test__deleting_referenced_row__nulls_references(self, repo: UserRepository, conn, make_user) -> None:
        creator = make_user("creator")
        child = make_user("child", created_by_id=creator.id)

        conn.execute('DELETE FROM "user" WHERE id = ?', (creator.id,))

        reloaded = repo.get_by_id(child.id)
        assert reloaded.created_by_id is None
        assert reloaded.created_by is None
