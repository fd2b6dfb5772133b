"""Full-text search over document fragments."""

from __future__ import annotations

import time
from typing import Any

from page_archive.core.config import Settings
from page_archive.core.logging import get_logger
from page_archive.core.metrics import SEARCH_LATENCY
from page_archive.db.fts import FTS_TABLE
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.db.statements import format_sql
from page_archive.models.entities import ResultRow

logger = get_logger(__name__)

# FTS5 has no cheap built-in rank for this table layout, so results are
# ordered by the owning document's last touch instead.
SEARCH_TEMPLATE = f"""
SELECT
  {FTS_TABLE}.rowid AS rowid,
  d.id AS entity_id,
  {FTS_TABLE}.attribute AS attribute,
  snippet({FTS_TABLE}, -1, {{open}}, {{close}}, {{ellipsis}}, {{tokens}}) AS snippet,
  d.url,
  d.hostname,
  d.title,
  d.excerpt,
  d.last_visit,
  d.last_visit_date,
  d.md_content_hash,
  d.updated_at,
  d.created_at
FROM {FTS_TABLE}
  INNER JOIN "document" d ON d.id = {FTS_TABLE}.entity_id
WHERE {FTS_TABLE} MATCH {{query}}
ORDER BY d.updated_at DESC, {FTS_TABLE}.rowid ASC
LIMIT {{limit}}
OFFSET {{offset}}
"""

COUNT_SQL = f"SELECT COUNT(*) AS count FROM {FTS_TABLE} WHERE {FTS_TABLE} MATCH ?"


class SearchService:
    """Paged, highlighted full-text queries joined to document metadata."""

    def __init__(self, db: SQLiteDatabase, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def search(self, query: str, limit: int | None = None, offset: int = 0) -> dict[str, Any]:
        """Run ``query`` against the index.

        ``count`` is computed by a separate statement over the whole index,
        so it is the total number of matching fragments regardless of
        ``limit``/``offset``. Raises ``sqlite3.Error`` for malformed queries.
        """
        limit = self.settings.search_default_limit if limit is None else limit
        start_time = time.perf_counter()
        count_row = await self.db.query_one(COUNT_SQL, [query])
        statement = format_sql(
            SEARCH_TEMPLATE,
            open=self.settings.highlight_open,
            close=self.settings.highlight_close,
            ellipsis=self.settings.ellipsis,
            tokens=self.settings.snippet_tokens,
            query=query,
            limit=limit,
            offset=offset,
        )
        rows = await self.db.query(statement.sql, statement.args)
        duration = time.perf_counter() - start_time
        SEARCH_LATENCY.observe(duration)

        results = [ResultRow.from_row(row) for row in rows]
        count = int(count_row["count"]) if count_row is not None else 0
        logger.info(
            "search",
            extra={"ctx_query": query, "ctx_count": count, "ctx_returned": len(results)},
        )
        return {
            "ok": True,
            "results": results,
            "count": count,
            "perf_ms": duration * 1000,
        }


__all__ = ["SearchService", "SEARCH_TEMPLATE", "COUNT_SQL"]
