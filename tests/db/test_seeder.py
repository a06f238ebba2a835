"""Tests for the development seeder."""
import sqlite3

from accounts.core.passwords import hash_password
from accounts.core.policy import ALL_RECORDS
from accounts.db.seeder import SEED_USERS, seed_users
from accounts.models.user import UserRole
from accounts.repositories.user_repository import UserRepository
from accounts.schemas.auth import LoginRequest
from accounts.services.auth_service import AuthService

MODERATOR_ID = "501b6cd9-cbd5-40be-bc45-6ff7c366b191"


class TestSeedUsers:
    def test__seed_users__inserts_fixed_accounts(self, database_url: str, repo: UserRepository) -> None:
        assert seed_users(database_url) == len(SEED_USERS)

        dev = repo.get_by_username("dev")
        assert dev.id == "5ff41c62-7d96-4111-a21c-6e2c57bbe55f"
        assert set(dev.roles) == {UserRole.ADMIN, UserRole.USER, UserRole.MODERATOR}

    def test__seed_users__is_idempotent(self, database_url: str, repo: UserRepository) -> None:
        seed_users(database_url)

        assert seed_users(database_url) == 0
        assert repo.count(ALL_RECORDS) == len(SEED_USERS)

    def test__seed_users__resets_changed_passwords(
        self,
        database_url: str,
        repo: UserRepository,
        conn: sqlite3.Connection,
        auth_service: AuthService,
    ) -> None:
        seed_users(database_url)
        repo.update(MODERATOR_ID, hashed_password=hash_password("Changed99"))
        conn.commit()

        seed_users(database_url)

        result = auth_service.login(LoginRequest(username="moderator", password="Mod@123"))
        assert result.user.id == MODERATOR_ID
