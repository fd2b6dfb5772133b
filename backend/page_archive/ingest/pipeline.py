"""Page indexing pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import SplitResult, urlsplit

from page_archive.core.config import Settings
from page_archive.core.logging import get_logger
from page_archive.db.documents import DocumentStore
from page_archive.db.sqlite import SQLiteDatabase
from page_archive.ingest.fragments import build_fragments, insert_fragments
from page_archive.utils.hashing import sha256_text
from page_archive.utils.text import markdown_to_text
from page_archive.utils.time import MAX_TIMESTAMP_MS, now_ms, to_unix_ms, visit_date

logger = get_logger(__name__)


@dataclass(slots=True)
class IndexOutcome:
    """Result of indexing one page."""

    url: str
    content_hash: str | None
    document_id: int | None = None
    inserted: bool = False
    fragments: int = 0

    @property
    def message(self) -> str:
        return f"indexed doc:{self.content_hash}, url:{self.url}"


def parse_page_url(url: str) -> SplitResult:
    """Parse ``url`` and require a scheme and a host.

    Raises ``ValueError`` for anything that is not an absolute URL.
    """
    parsed = urlsplit(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Invalid URL: {url!r}")
    _ = parsed.port  # raises ValueError when out of range
    if not parsed.hostname:
        raise ValueError(f"Invalid URL: {url!r}")
    return parsed


def should_consider(parsed: SplitResult) -> bool:
    """Protocol/hostname filter: only http(s) pages off local hosts."""
    hostname = parsed.hostname or ""
    if not parsed.scheme.startswith("http"):
        return False
    return hostname != "localhost" and not hostname.endswith(".local")


def content_hash(md_content: str | None) -> str | None:
    """Hash page markdown, logging and returning ``None`` on failure."""
    if not md_content:
        return None
    try:
        return sha256_text(md_content)
    except (TypeError, ValueError) as exc:
        logger.warning("Hashing page content failed: %s", exc)
        return None


class IndexPipeline:
    """Upsert a page's document row and, on first insert, its fragments."""

    def __init__(self, database: SQLiteDatabase, store: DocumentStore, settings: Settings) -> None:
        self.db = database
        self.store = store
        self.settings = settings

    async def index_page(
        self,
        url: str,
        page: Mapping[str, Any],
        visited_at: int | None = None,
    ) -> IndexOutcome:
        parsed = parse_page_url(url)
        href = parsed.geturl()
        md_content = page.get("md_content")
        text_content = page.get("text_content")
        if not text_content and md_content:
            text_content = markdown_to_text(md_content)

        last_visit = visited_at or now_ms()
        if not 0 < last_visit <= MAX_TIMESTAMP_MS:
            logger.warning("Ignoring out-of-range visit time %s for %s", visited_at, href)
            last_visit = now_ms()
        digest = content_hash(md_content)
        document = {
            "title": page.get("title"),
            "excerpt": page.get("excerpt"),
            "md_content": md_content,
            "md_content_hash": digest,
            "publication_date": to_unix_ms(page.get("date")),
            "url": href,
            "hostname": parsed.hostname,
            "last_visit": last_visit,
            "last_visit_date": visit_date(last_visit),
            "extractor": page.get("extractor"),
        }
        outcome = IndexOutcome(url=href, content_hash=digest)

        inserted = await self.store.upsert(document)
        if inserted is None:
            return outcome

        logger.info("new insertion", extra={"ctx_document_id": inserted.id, "ctx_url": href})
        fragments = build_fragments(
            title=document["title"],
            excerpt=document["excerpt"],
            url=href,
            text_content=text_content,
            max_tokens=self.settings.fragment_max_tokens,
            min_tokens=self.settings.fragment_min_tokens,
        )
        outcome.document_id = inserted.id
        outcome.inserted = True
        outcome.fragments = await insert_fragments(self.db, inserted.id, fragments)
        return outcome


__all__ = ["IndexOutcome", "IndexPipeline", "content_hash", "parse_page_url", "should_consider"]
