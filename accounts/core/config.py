"""Application configuration loaded via pydantic settings."""

from typing import List
import secrets

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Strongly-typed service settings with environment overrides."""

    # Application
    APP_NAME: str = "Accounts Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    # RPC groups served by this process ("auth", "user")
    SERVICES: List[str] = ["auth", "user"]

    # Tokens
    JWT_SECRET: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"
    TOKEN_EXPIRE_HOURS: int = 4

    # Passwords
    BCRYPT_ROUNDS: int = 10
    GENERATED_PASSWORD_LENGTH: int = 6

    # Database
    DATABASE_URL: str = "sqlite:///./data/accounts.db"
    DB_TIMEOUT_SECONDS: float = 5.0
    SEED_USERS: bool = False

    # Response cache ("memory://" or a redis:// URL)
    CACHE_URL: str = "memory://"
    CACHE_KEY_PREFIX: str = "accounts:"
    CACHE_TTL_SECONDS: int = 0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_LEVELS: str = "TRACE,ERROR,WARNING,INFO"
    LOG_FILE_PATH: str = "./logs/accounts.log"
    LOG_RETENTION_DAYS: int = 14

    class Config:
        """Configure environment file loading behavior."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


settings = Settings()
