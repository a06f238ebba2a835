"""Pytest fixtures for testing."""
import os
import tempfile

# Settings are read at import time; these must be in place first.
_TMP_DIR = tempfile.mkdtemp(prefix="accounts-tests-")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("LOG_FILE_PATH", os.path.join(_TMP_DIR, "accounts.log"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TMP_DIR}/default.db")
os.environ.setdefault("CACHE_URL", "memory://")

import sqlite3
import uuid
from collections.abc import Callable, Generator

import pytest

from accounts.api.dispatcher import Dispatcher, build_dispatch_table
from accounts.core.cache import MemoryCacheBackend, ResponseCache
from accounts.core.passwords import hash_password
from accounts.db.database import get_connection, init_db
from accounts.models.user import User, UserRole
from accounts.repositories.user_repository import UserRepository
from accounts.schemas.user import CurrentUser
from accounts.services.auth_service import AuthService
from accounts.services.user_service import UserService

DEFAULT_PASSWORD = "Secret123"


@pytest.fixture
def database_url(tmp_path) -> str:
    """A fresh SQLite database with the schema applied."""
    url = f"sqlite:///{tmp_path}/accounts.db"
    init_db(url)
    return url


@pytest.fixture
def conn(database_url: str) -> Generator[sqlite3.Connection]:
    connection = get_connection(database_url)
    try:
        yield connection
    finally:
        connection.close()


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache(MemoryCacheBackend())


@pytest.fixture
def repo(conn: sqlite3.Connection) -> UserRepository:
    return UserRepository(conn)


@pytest.fixture
def user_service(conn: sqlite3.Connection, cache: ResponseCache) -> UserService:
    return UserService(conn, cache)


@pytest.fixture
def auth_service(conn: sqlite3.Connection) -> AuthService:
    return AuthService(conn)


@pytest.fixture
def make_user(repo: UserRepository, conn: sqlite3.Connection) -> Callable[..., User]:
    """Factory inserting a user directly through the repository."""
    hashed_default = hash_password(DEFAULT_PASSWORD)

    def _make(
        username: str | None = None,
        roles: list[UserRole] | None = None,
        password: str | None = None,
        deleted: bool = False,
        created_by_id: str | None = None,
    ) -> User:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        user = repo.create(
            username=username,
            email=f"{username}@acme.io",
            hashed_password=hash_password(password) if password else hashed_default,
            roles=roles or [UserRole.USER],
            created_by_id=created_by_id,
        )
        if deleted:
            user = repo.soft_delete(user.id, deleted_by_id=user.id)
        conn.commit()
        return user

    return _make


def identity_of(user: User) -> CurrentUser:
    return CurrentUser.model_validate(user)


@pytest.fixture
def admin(make_user) -> User:
    return make_user("root_admin", roles=[UserRole.ADMIN])


@pytest.fixture
def member(make_user) -> User:
    return make_user("plain_member", roles=[UserRole.USER])


@pytest.fixture
def admin_identity(admin: User) -> CurrentUser:
    return identity_of(admin)


@pytest.fixture
def member_identity(member: User) -> CurrentUser:
    return identity_of(member)


@pytest.fixture
def dispatcher(database_url: str, cache: ResponseCache) -> Dispatcher:
    return Dispatcher(
        build_dispatch_table(["auth", "user"]),
        cache=cache,
        database_url=database_url,
    )
