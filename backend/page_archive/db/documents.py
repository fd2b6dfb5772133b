"""Canonical ``document`` table access."""

from __future__ import annotations

import sqlite3
from typing import Any, Mapping

from page_archive.core.logging import get_logger
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.db.statements import build_insert, build_update, format_sql
from page_archive.models.entities import Document
from page_archive.utils.time import now_ms, visit_date

logger = get_logger(__name__)

INSERT_COLUMNS = (
    "title",
    "url",
    "excerpt",
    "md_content",
    "md_content_hash",
    "publication_date",
    "hostname",
    "last_visit",
    "last_visit_date",
    "extractor",
    "updated_at",
    "created_at",
)


class DocumentStore:
    """Dedup-on-URL document persistence with a best-effort staging mirror.

    Every new row is written to the primary database and then replayed
    against ``staging``. A staging failure is logged and never undoes the
    primary write.
    """

    def __init__(self, db: SQLiteDatabase, staging: SQLiteDatabase | None = None) -> None:
        self.db = db
        self.staging = staging

    async def upsert(self, document: Mapping[str, Any]) -> Document | None:
        """Insert a new document or refresh the existing one for its URL.

        Returns the inserted ``Document`` on a true insertion and ``None`` when
        the URL was already known.
        """
        url = document.get("url")
        if not url:
            raise ValueError("document url is required")

        existing = await self._find_one_raw('SELECT "id", "md_content_hash" FROM "document" WHERE "url" = ?', [url])
        now = now_ms()
        if existing is not None:
            new_hash = document.get("md_content_hash")
            if new_hash is not None and new_hash == existing["md_content_hash"]:
                logger.debug("Content unchanged for %s; touching visit fields", url)
                await self.touch(
                    existing["id"],
                    updated_at=now,
                    last_visit=document.get("last_visit") or now,
                    last_visit_date=document.get("last_visit_date"),
                )
                return None
            statement = build_update(
                "document",
                {
                    "updated_at": now,
                    "excerpt": document.get("excerpt"),
                    "md_content": document.get("md_content"),
                    "md_content_hash": new_hash,
                    "last_visit": document.get("last_visit"),
                    "last_visit_date": document.get("last_visit_date"),
                },
                '"id" = ?',
                [existing["id"]],
            )
            await self.db.execute_commit(statement.sql, statement.args)
            return None

        values = {column: document.get(column) for column in INSERT_COLUMNS}
        values["updated_at"] = values["updated_at"] or now
        values["created_at"] = values["created_at"] or now
        statement = build_insert("document", values)
        await self.db.execute_commit(statement.sql, statement.args)
        await self._mirror_to_staging(statement.sql, statement.args)
        return await self.find_by_url(url)

    async def touch(
        self,
        document_id: int,
        updated_at: int | None = None,
        last_visit: int | None = None,
        last_visit_date: str | None = None,
    ) -> bool:
        """Refresh only the visit timestamps of an existing document."""
        now = now_ms()
        last_visit = last_visit or now
        statement = format_sql(
            'UPDATE "document" SET "updated_at" = {}, "last_visit" = {}, "last_visit_date" = {} WHERE "id" = {}',
            updated_at or now,
            last_visit,
            last_visit_date or visit_date(last_visit),
            document_id,
        )
        return await self.db.execute_commit(statement.sql, statement.args) > 0

    async def find_by_url(self, url: str) -> Document | None:
        row = await self._find_one_raw('SELECT * FROM "document" WHERE "url" = ?', [url])
        return Document.from_row(row) if row is not None else None

    async def _find_one_raw(self, sql: str, params: list[Any]) -> Any:
        rows = await self.db.query(sql, params)
        if len(rows) > 1:
            logger.warning("find_one returned %s rows; using the first", len(rows))
        return rows[0] if rows else None

    async def _mirror_to_staging(self, sql: str, args: list[Any]) -> None:
        if self.staging is None:
            return
        try:
            await self.staging.execute_commit(sql, args)
        except sqlite3.Error as exc:
            await self.staging.rollback()
            logger.warning("Staging write failed for %s: %s", self.staging.db_path, exc)


__all__ = ["DocumentStore", "INSERT_COLUMNS"]
