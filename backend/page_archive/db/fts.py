"""Fragment table and its FTS5 mirror.

The ``fragment_fts`` virtual table holds one row per ``document_fragment``
row, addressed by the same rowid. Triggers keep the two in step on insert,
delete (including deletes cascaded from ``document``) and update.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from page_archive.core.logging import get_logger
from page_archive.db.sqlite import SQLiteDatabase

logger = get_logger(__name__)

FTS_TABLE = "fragment_fts"

FTS_MIGRATIONS: tuple[str, ...] = (
    """
CREATE TABLE IF NOT EXISTS "document_fragment" (
  "id" INTEGER PRIMARY KEY AUTOINCREMENT NOT NULL,
  "entity_id" INTEGER NOT NULL REFERENCES "document" ("id") ON DELETE CASCADE,
  "attribute" TEXT,
  "value" TEXT,
  "ordinal" INTEGER,
  "created_at" INTEGER
);
    """,
    # INSERT OR IGNORE in the fragment writer relies on this constraint.
    """
CREATE UNIQUE INDEX IF NOT EXISTS "document_fragment_entity_attribute_ordinal"
  ON "document_fragment" ("entity_id", "attribute", "ordinal");
    """,
    """
CREATE VIRTUAL TABLE "fragment_fts" USING fts5(
  entity_id,
  attribute,
  value,
  tokenize='porter'
);
    """,
    """
CREATE TRIGGER "fragment_fts_ai" AFTER INSERT ON "document_fragment" BEGIN
  INSERT INTO "fragment_fts" ("rowid", "entity_id", "attribute", "value")
  VALUES (new."id", new."entity_id", new."attribute", new."value");
END;
    """,
    """
CREATE TRIGGER "fragment_fts_ad" AFTER DELETE ON "document_fragment" BEGIN
  DELETE FROM "fragment_fts" WHERE rowid = old."id";
END;
    """,
    """
CREATE TRIGGER IF NOT EXISTS "fragment_fts_au" AFTER UPDATE ON "document_fragment" BEGIN
  DELETE FROM "fragment_fts" WHERE rowid = old."id";
  INSERT INTO "fragment_fts" ("rowid", "entity_id", "attribute", "value")
  VALUES (new."id", new."entity_id", new."attribute", new."value");
END;
    """,
)


@dataclass(slots=True)
class IndexParity:
    """Row-identity comparison between fragments and the full-text index."""

    fragments: int = 0
    entries: int = 0
    missing: list[int] = field(default_factory=list)
    orphaned: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing and not self.orphaned

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "fragments": self.fragments,
            "entries": self.entries,
            "missing": self.missing,
            "orphaned": self.orphaned,
        }


async def index_parity(db: SQLiteDatabase) -> IndexParity:
    """Compare fragment ids with full-text index rowids."""
    fragment_ids = {row["id"] for row in await db.query('SELECT "id" FROM "document_fragment"')}
    entry_ids = {row["rowid"] for row in await db.query(f'SELECT rowid FROM "{FTS_TABLE}"')}
    return IndexParity(
        fragments=len(fragment_ids),
        entries=len(entry_ids),
        missing=sorted(fragment_ids - entry_ids),
        orphaned=sorted(entry_ids - fragment_ids),
    )


async def rebuild_index(db: SQLiteDatabase) -> int:
    """Rewrite the full-text index from the fragment table in one transaction."""
    async with db.transaction() as cursor:
        await cursor.execute(f'DELETE FROM "{FTS_TABLE}"')
        await cursor.execute(
            f"""
            INSERT INTO "{FTS_TABLE}" ("rowid", "entity_id", "attribute", "value")
            SELECT "id", "entity_id", "attribute", "value" FROM "document_fragment"
            """
        )
        await cursor.execute(f'SELECT COUNT(*) FROM "{FTS_TABLE}"')
        row = await cursor.fetchone()
        rebuilt = row[0]
    logger.info("Rebuilt full-text index with %s entries", rebuilt)
    return rebuilt


__all__ = ["FTS_MIGRATIONS", "FTS_TABLE", "IndexParity", "index_parity", "rebuild_index"]
