"""Engine lifecycle and the operations offered to the hosting application.

``ArchiveEngine`` moves from ``UNINITIALIZED`` to ``READY`` or
``FAILED`` exactly once, in ``initialize()``. All other operations catch
their own errors and report them in the returned payload.
"""

from __future__ import annotations

import enum
import sqlite3
from typing import Any, Mapping

from page_archive.core.config import Settings
from page_archive.core.logging import get_logger
from page_archive.core.metrics import ENGINE_READY, PAGE_OPERATIONS
from page_archive.db.documents import DocumentStore
from page_archive.db.fts import index_parity, rebuild_index
from page_archive.db.migrations import ALL_MIGRATIONS, migrate
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.ingest.pipeline import IndexPipeline, parse_page_url, should_consider
from page_archive.models.entities import Document
from page_archive.retrieval.search import SearchService
from page_archive.utils.time import now_ms, visit_date

logger = get_logger(__name__)


class EngineState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


class EngineNotReady(RuntimeError):
    """Raised when an operation runs before successful initialization."""


class ArchiveEngine:
    """SQLite-backed indexing and search engine."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.db = SQLiteDatabase(settings.db_path)
        self.staging_db = SQLiteDatabase(settings.staging_db_path)
        self.store = DocumentStore(self.db, staging=self.staging_db)
        self.pipeline = IndexPipeline(self.db, self.store, settings)
        self.search_service = SearchService(self.db, settings)
        self.state = EngineState.UNINITIALIZED
        self.error: BaseException | None = None

    async def initialize(self) -> None:
        """Open both stores and run migrations; failure is final."""
        if self.state is not EngineState.UNINITIALIZED:
            return
        try:
            await migrate(self.db, ALL_MIGRATIONS)
            await migrate(self.staging_db, ALL_MIGRATIONS)
        except Exception as exc:
            logger.exception("Error initializing database")
            self.error = exc
            self.state = EngineState.FAILED
            ENGINE_READY.set(0)
            raise
        self.state = EngineState.READY
        ENGINE_READY.set(1)
        logger.info("DB ready", extra={"ctx_db": str(self.db.db_path)})

    async def close(self) -> None:
        await self.db.close()
        await self.staging_db.close()

    def _require_ready(self) -> None:
        if self.state is not EngineState.READY:
            raise EngineNotReady(str(self.error) if self.error else "db not ready")

    # Operations -------------------------------------------------------

    def get_status(self) -> dict[str, Any]:
        if self.state is EngineState.FAILED:
            return {
                "ok": False,
                "error": str(self.error),
                "detail": {"type": type(self.error).__name__},
            }
        if self.state is not EngineState.READY:
            return {"ok": False, "error": "db not ready"}
        return {"ok": True}

    async def get_page_status(self, url: str) -> dict[str, Any]:
        """Report whether ``url`` still needs content, touching it if known."""
        try:
            self._require_ready()
            parsed = parse_page_url(url)
            existing = await self.store.find_by_url(parsed.geturl())
            # A known page without stored content is offered for indexing again.
            should_index = existing is None or not existing.md_content
            if existing is not None:
                now = now_ms()
                await self.store.touch(
                    existing.id,
                    updated_at=now,
                    last_visit=now,
                    last_visit_date=visit_date(now),
                )
        except (EngineNotReady, ValueError, OverflowError, OSError, sqlite3.Error) as exc:
            PAGE_OPERATIONS.labels(operation="page_status", outcome="error").inc()
            return {"should_index": False, "error": str(exc)}
        PAGE_OPERATIONS.labels(operation="page_status", outcome="ok").inc()
        logger.info("getPageStatus", extra={"ctx_url": url, "ctx_should_index": should_index})
        return {"should_index": should_index}

    async def index_page(
        self,
        page: Mapping[str, Any],
        url: str,
        visit: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        visited_at = (visit or {}).get("visited_at")
        try:
            self._require_ready()
            outcome = await self.pipeline.index_page(url, page, visited_at=visited_at)
        except (EngineNotReady, ValueError, OverflowError, OSError, sqlite3.Error) as exc:
            logger.warning("indexPage failed for %s: %s", url, exc)
            PAGE_OPERATIONS.labels(operation="index_page", outcome="error").inc()
            return {"ok": False, "message": str(exc)}
        outcome_label = "inserted" if outcome.inserted else "updated"
        PAGE_OPERATIONS.labels(operation="index_page", outcome=outcome_label).inc()
        return {"ok": True, "message": outcome.message}

    async def nothing_to_index(self, url: str) -> dict[str, Any]:
        logger.info("nothingToIndex", extra={"ctx_url": url})
        PAGE_OPERATIONS.labels(operation="nothing_to_index", outcome="ok").inc()
        return {"ok": True}

    async def search(self, query: str, limit: int | None = None, offset: int = 0) -> dict[str, Any]:
        try:
            self._require_ready()
            return await self.search_service.search(query, limit=limit, offset=offset)
        except (EngineNotReady, sqlite3.Error) as exc:
            logger.warning("search failed for %r: %s", query, exc)
            return {"ok": False, "results": [], "count": 0, "perf_ms": 0.0, "error": str(exc)}

    async def find_one(self, url: str) -> Document | None:
        """Return the stored document for ``url``, or ``None``.

        Raises ``EngineNotReady`` before a successful ``initialize()``; storage
        errors are logged and reported as no document.
        """
        self._require_ready()
        try:
            return await self.store.find_by_url(url)
        except sqlite3.Error as exc:
            logger.warning("findOne failed for %s: %s", url, exc)
            return None

    async def index_parity(self) -> dict[str, Any]:
        self._require_ready()
        return (await index_parity(self.db)).to_dict()

    async def rebuild_index(self) -> int:
        self._require_ready()
        return await rebuild_index(self.db)


class DebugEngine:
    """Engine stand-in that logs calls and never touches storage."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.state = EngineState.UNINITIALIZED

    async def initialize(self) -> None:
        self.state = EngineState.READY
        ENGINE_READY.set(1)

    async def close(self) -> None:
        return None

    def get_status(self) -> dict[str, Any]:
        return {"ok": True}

    async def get_page_status(self, url: str) -> dict[str, Any]:
        try:
            should_index = should_consider(parse_page_url(url))
        except ValueError as exc:
            return {"should_index": False, "error": str(exc)}
        logger.info("getPageStatus (debug)", extra={"ctx_url": url, "ctx_should_index": should_index})
        return {"should_index": should_index}

    async def index_page(
        self,
        page: Mapping[str, Any],
        url: str,
        visit: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        logger.info("indexPage (debug)", extra={"ctx_url": url, "ctx_title": page.get("title")})
        return {"ok": False, "message": "debug backend does not index pages"}

    async def nothing_to_index(self, url: str) -> dict[str, Any]:
        logger.info("nothingToIndex (debug)", extra={"ctx_url": url})
        return {"ok": True}

    async def search(self, query: str, limit: int | None = None, offset: int = 0) -> dict[str, Any]:
        logger.info("search (debug)", extra={"ctx_query": query})
        return {"ok": True, "results": [], "count": 0, "perf_ms": 0.0}

    async def find_one(self, url: str) -> Document | None:
        return None

    async def index_parity(self) -> dict[str, Any]:
        return {"ok": True, "fragments": 0, "entries": 0, "missing": [], "orphaned": []}

    async def rebuild_index(self) -> int:
        return 0


def create_engine(settings: Settings) -> ArchiveEngine | DebugEngine:
    if settings.backend == "debug":
        return DebugEngine(settings)
    return ArchiveEngine(settings)


__all__ = ["ArchiveEngine", "DebugEngine", "EngineNotReady", "EngineState", "create_engine"]
