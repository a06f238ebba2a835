"""
Password lifecycle helpers: bcrypt hashing, verification, and generation of
one-time passwords for accounts created without one.
"""
import logging
import secrets
import string

from passlib.context import CryptContext

from accounts.core.config import settings
import accounts.core.logging_config  # noqa: F401 - registers Logger.trace

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(plain_password: str) -> str:
    """Return the bcrypt hash of *plain_password*."""
    logger.trace("Hashing user password")
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Return True if *plain_password* matches *hashed_password*."""
    logger.trace("Verifying password hash")
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Stored value is not a recognised hash
        logger.warning("Stored password hash could not be parsed")
        return False


def generate_password(length: int = settings.GENERATED_PASSWORD_LENGTH) -> str:
    """Return a random password drawn uniformly from [A-Za-z0-9]."""
    if length < 1:
        raise ValueError("Password length must be positive")
    logger.trace("Generating random password of length=%s", length)
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def dummy_verify() -> None:
    """Spend the time of a real verification when there is no hash to check."""
    pwd_context.dummy_verify()
