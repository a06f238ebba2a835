"""
Database seeder – development accounts with fixed ids.

⚠️  FOR DEVELOPMENT ONLY. Enabled with SEED_USERS=true.

Existing rows keep their data; only their passwords are reset to the values
below, so the credentials are always known after a restart.
"""
import logging
from typing import Optional

from accounts.core.passwords import hash_password
from accounts.db.database import get_db
from accounts.models.user import UserRole
from accounts.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Seed data – change these values freely during development
# ---------------------------------------------------------------------------
SEED_USERS = [
    {
        "id": "5ff41c62-7d96-4111-a21c-6e2c57bbe55f",
        "username": "dev",
        "email": "dev@google.com",
        "password": "Dev@123",
        "roles": [UserRole.ADMIN, UserRole.USER, UserRole.MODERATOR],
    },
    {
        "id": "6dc3d7c4-5ebf-47c2-b850-c4256c80bc04",
        "username": "user",
        "email": "user@google.com",
        "password": "User@123",
        "roles": [UserRole.USER],
    },
    {
        "id": "6eb6373f-f3fd-4347-ae32-2203eb725024",
        "username": "admin",
        "email": "admin@google.com",
        "password": "Admin@123",
        "roles": [UserRole.ADMIN],
    },
    {
        "id": "501b6cd9-cbd5-40be-bc45-6ff7c366b191",
        "username": "moderator",
        "email": "moderator@google.com",
        "password": "Mod@123",
        "roles": [UserRole.MODERATOR],
    },
]


def seed_users(url: Optional[str] = None) -> int:
    """
    Insert missing seed users and reset the password of existing ones.
    Returns the number of users inserted.
    """
    inserted = 0
    with get_db(url) as conn:
        repo = UserRepository(conn)
        for seed in SEED_USERS:
            hashed = hash_password(seed["password"])
            if repo.get_by_id(seed["id"]) is None:
                repo.create(
                    user_id=seed["id"],
                    username=seed["username"],
                    email=seed["email"],
                    hashed_password=hashed,
                    roles=seed["roles"],
                )
                inserted += 1
                logger.info("Seeder: created user '%s'", seed["username"])
            else:
                repo.update(seed["id"], hashed_password=hashed)
                logger.info("Seeder: user '%s' exists – password reset", seed["username"])
    return inserted
