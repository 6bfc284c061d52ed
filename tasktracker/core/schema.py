"""SQLite schema management (code-first approach)."""

import logging

from tasktracker.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in dependency order
COLLECTIONS = [
    "users",
    "tasks",
]


_TABLES: dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            email TEXT NOT NULL UNIQUE,
            username TEXT UNIQUE,
            name TEXT NOT NULL,
            password_hash TEXT,
            google_id TEXT UNIQUE,
            picture TEXT,
            created_at TEXT NOT NULL
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            description TEXT,
            priority TEXT NOT NULL DEFAULT 'Medium' CHECK (priority IN ('Low', 'Medium', 'High')),
            status TEXT NOT NULL DEFAULT 'To Do' CHECK (status IN ('To Do', 'In Progress', 'Done')),
            due_date TEXT,
            user_id INTEGER NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """,
}

_INDEXES: dict[str, list[str]] = {
    "users": [],
    "tasks": [
        "CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks (user_id)",
        "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks (user_id, created_at)",
    ],
}


async def init_db(*, db_path: str | None = None) -> None:
    """Create all tables and indexes (idempotent)."""
    conn = await db_client.get_connection(db_path=db_path)

    for collection in COLLECTIONS:
        await conn.execute(_TABLES[collection])
        for index_sql in _INDEXES[collection]:
            await conn.execute(index_sql)
        logger.info("Ensured table: %s", collection)

    await conn.commit()
    logger.info("SQLite schema initialized", extra={"db_path": str(db_client.get_db_path(db_path))})
