"""
SQL DDL for the ``user`` table.

Audit columns reference the same table; removing a referenced row nulls the
reference instead of cascading. Statements use IF NOT EXISTS so running them
on every startup is safe.
"""
from typing import Optional

from accounts.db.database import get_connection

CREATE_USER_TABLE = """
CREATE TABLE IF NOT EXISTS "user" (
    id          TEXT    PRIMARY KEY,
    username    TEXT    NOT NULL,
    email       TEXT    NOT NULL,
    password    TEXT    NOT NULL,
    roles       TEXT    NOT NULL DEFAULT '["User"]'
                        CHECK(json_valid(roles)),
    created_at  TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL,
    deleted_at  TEXT,
    created_by  TEXT    REFERENCES "user"(id) ON DELETE SET NULL ON UPDATE CASCADE,
    updated_by  TEXT    REFERENCES "user"(id) ON DELETE SET NULL ON UPDATE CASCADE,
    deleted_by  TEXT    REFERENCES "user"(id) ON DELETE SET NULL ON UPDATE CASCADE,
    CONSTRAINT user_username_key UNIQUE (username),
    CONSTRAINT user_email_key UNIQUE (email)
);
"""

CREATE_INDEXES = [
    'CREATE INDEX IF NOT EXISTS user_created_at_idx ON "user"(created_at)',
    'CREATE INDEX IF NOT EXISTS user_deleted_at_idx ON "user"(deleted_at)',
]


def create_tables(url: Optional[str] = None) -> None:
    """Create the table and its indexes."""
    conn = get_connection(url)
    try:
        cursor = conn.cursor()
        cursor.execute(CREATE_USER_TABLE)
        for ddl in CREATE_INDEXES:
            cursor.execute(ddl)
        conn.commit()
    finally:
        conn.close()
