"""Decompose documents into indexable fragments and persist them."""

from __future__ import annotations

from typing import Sequence

from page_archive.core.logging import get_logger
from page_archive.core.metrics import FRAGMENTS_WRITTEN
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.ingest.chunker import chunk_text
from page_archive.models.entities import Fragment
from page_archive.utils.time import now_ms

logger = get_logger(__name__)

# OR IGNORE rather than OR REPLACE: a replace deletes and re-inserts the row
# under a new rowid, which fires the index triggers again.
INSERT_FRAGMENT_SQL = """
INSERT OR IGNORE INTO "document_fragment" ("entity_id", "attribute", "value", "ordinal", "created_at")
VALUES (?, ?, ?, ?, ?)
"""


def build_fragments(
    title: str | None = None,
    excerpt: str | None = None,
    url: str | None = None,
    text_content: str | None = None,
    max_tokens: int = 160,
    min_tokens: int = 24,
) -> list[Fragment]:
    """Return title/excerpt/url fragments followed by ordered body chunks."""
    fragments: list[Fragment] = []
    if title:
        fragments.append(Fragment(attribute="title", value=title, ordinal=0))
    if excerpt:
        fragments.append(Fragment(attribute="excerpt", value=excerpt, ordinal=0))
    if url:
        fragments.append(Fragment(attribute="url", value=url, ordinal=0))
    chunks = chunk_text(text_content or "", max_tokens=max_tokens, min_tokens=min_tokens)
    fragments.extend(
        Fragment(attribute="content", value=chunk, ordinal=ordinal) for ordinal, chunk in enumerate(chunks)
    )
    return fragments


async def insert_fragments(db: SQLiteDatabase, entity_id: int, fragments: Sequence[Fragment]) -> int:
    """Write all fragments for one document atomically.

    Rows that collide on (entity, attribute, ordinal) are skipped. Returns
    the number of rows actually inserted.
    """
    if not fragments:
        return 0
    created_at = now_ms()
    inserted = 0
    async with db.transaction() as cursor:
        for fragment in fragments:
            await cursor.execute(
                INSERT_FRAGMENT_SQL,
                [entity_id, fragment.attribute, fragment.value, fragment.ordinal, created_at],
            )
            inserted += max(cursor.rowcount, 0)
    FRAGMENTS_WRITTEN.inc(inserted)
    logger.debug("Inserted %s of %s fragments for document %s", inserted, len(fragments), entity_id)
    return inserted


__all__ = ["INSERT_FRAGMENT_SQL", "build_fragments", "insert_fragments"]
