"""Schema statements and the exact-text migration runner."""

from __future__ import annotations

import sqlite3
from typing import Sequence

from page_archive.core.logging import get_logger
from page_archive.db.fts import FTS_MIGRATIONS
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.utils.time import utc_now

logger = get_logger(__name__)

MIGRATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS internal_migrations (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  sql TEXT UNIQUE NOT NULL,
  date TEXT
);
"""

# A URL maps to exactly one document; identical text under different URLs is
# stored once per URL.
DOCUMENT_MIGRATIONS: tuple[str, ...] = (
    """
CREATE TABLE IF NOT EXISTS "document" (
  "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
  "title" TEXT,
  "url" TEXT UNIQUE NOT NULL,
  "excerpt" TEXT,
  "md_content" TEXT,
  "md_content_hash" TEXT,
  "publication_date" INTEGER,
  "hostname" TEXT,
  "last_visit" INTEGER,
  "last_visit_date" TEXT,
  "extractor" TEXT,
  "created_at" INTEGER NOT NULL,
  "updated_at" INTEGER
);
    """,
    """CREATE INDEX IF NOT EXISTS "document_hostname" ON "document" ("hostname");""",
    """CREATE INDEX IF NOT EXISTS "document_updated_at" ON "document" ("updated_at");""",
)

ALL_MIGRATIONS: tuple[str, ...] = DOCUMENT_MIGRATIONS + FTS_MIGRATIONS


class MigrationError(RuntimeError):
    """Raised when a schema statement fails to execute."""

    def __init__(self, statement: str, cause: BaseException) -> None:
        super().__init__(f"migration failed: {cause}")
        self.statement = statement


async def ensure_migrations_table(db: SQLiteDatabase) -> None:
    await db.execute_commit(MIGRATIONS_TABLE_SQL.strip())


async def migrate(db: SQLiteDatabase, migrations: Sequence[str]) -> int:
    """Apply each statement once per database file, in order.

    Statements are keyed by their whitespace-trimmed text, so a statement
    whose internal formatting changes is treated as new and runs again.
    Returns the number of statements executed by this call.
    """
    try:
        await ensure_migrations_table(db)
    except sqlite3.Error as exc:
        raise MigrationError(MIGRATIONS_TABLE_SQL.strip(), exc) from exc
    applied = 0
    for raw_sql in migrations:
        sql = raw_sql.strip()
        existing = await db.query_one(
            "SELECT id FROM internal_migrations WHERE sql = ? LIMIT 1",
            [sql],
        )
        if existing is not None:
            logger.debug("migration already run, skipping :: %s", existing["id"])
            continue
        try:
            async with db.transaction() as cursor:
                await cursor.execute(sql)
                await cursor.execute(
                    "INSERT INTO internal_migrations (sql, date) VALUES (?, ?)",
                    [sql, utc_now().isoformat()],
                )
        except sqlite3.Error as exc:
            logger.error("Migration failed on %s: %s", db.db_path, exc)
            raise MigrationError(sql, exc) from exc
        applied += 1
    logger.info(
        "migrations complete",
        extra={"ctx_db": str(db.db_path), "ctx_applied": applied, "ctx_total": len(migrations)},
    )
    return applied


async def applied_migrations(db: SQLiteDatabase) -> list[str]:
    rows = await db.query("SELECT sql FROM internal_migrations ORDER BY id ASC")
    return [row["sql"] for row in rows]


__all__ = [
    "ALL_MIGRATIONS",
    "DOCUMENT_MIGRATIONS",
    "MigrationError",
    "applied_migrations",
    "ensure_migrations_table",
    "migrate",
]
