"""Database connection helpers and initialization."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator, Optional

from accounts.core.config import settings
import accounts.core.logging_config  # noqa: F401 - registers Logger.trace

logger = logging.getLogger(__name__)


def database_path(url: Optional[str] = None) -> str:
    """Extract the file path from a ``sqlite:///`` DATABASE_URL."""
    url = url or settings.DATABASE_URL
    if not url.startswith("sqlite:///"):
        raise ValueError(f"Unsupported DATABASE_URL: {url}")
    return url.replace("sqlite:///", "", 1)


def get_connection(url: Optional[str] = None) -> sqlite3.Connection:
    """
    Open a new SQLite connection with row factory and foreign keys enabled.
    Lock waits are bounded by DB_TIMEOUT_SECONDS.
    """
    path = database_path(url)
    db_dir = os.path.dirname(path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    logger.trace("Opening database connection to %s", path)
    conn = sqlite3.connect(
        path,
        timeout=settings.DB_TIMEOUT_SECONDS,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db(url: Optional[str] = None) -> Iterator[sqlite3.Connection]:
    """Context manager that yields a connection and commits or rolls back."""
    conn = get_connection(url)
    try:
        yield conn
        conn.commit()
        logger.trace("Database transaction committed")
    except Exception:
        logger.warning("Database transaction rolled back")
        conn.rollback()
        raise
    finally:
        conn.close()
        logger.trace("Database connection closed")


def init_db(url: Optional[str] = None) -> None:
    """Create the schema if it does not exist yet."""
    from accounts.db import schema

    logger.info("Initializing database schema")
    schema.create_tables(url)
