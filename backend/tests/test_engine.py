"""Engine lifecycle and page operation tests."""

from __future__ import annotations

import sqlite3

import pytest

from page_archive.core.config import Settings
from page_archive.db.migrations import MigrationError
from page_archive.engine import ArchiveEngine, DebugEngine, EngineState, create_engine
from page_archive.ingest.pipeline import content_hash, parse_page_url, should_consider
from page_archive.utils.hashing import sha256_text
from page_archive.utils.time import MAX_TIMESTAMP_MS, now_ms

URL = "https://example.com/article"


async def _fragment_count(engine: ArchiveEngine) -> int:
    row = await engine.db.query_one('SELECT COUNT(*) AS n FROM "document_fragment"')
    return row["n"]


async def test_status_before_and_after_initialize(settings: Settings) -> None:
    engine = ArchiveEngine(settings)
    assert engine.state is EngineState.UNINITIALIZED
    assert engine.get_status() == {"ok": False, "error": "db not ready"}
    assert (await engine.search("anything"))["ok"] is False
    await engine.initialize()
    try:
        assert engine.state is EngineState.READY
        assert engine.get_status() == {"ok": True}
        assert settings.staging_db_path.exists()
    finally:
        await engine.close()


async def test_failed_initialize_is_terminal(settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("page_archive.engine.ALL_MIGRATIONS", ("CREATE TABLE broken (",))
    engine = ArchiveEngine(settings)
    with pytest.raises(MigrationError):
        await engine.initialize()
    try:
        assert engine.state is EngineState.FAILED
        status = engine.get_status()
        assert status["ok"] is False
        assert "migration failed" in status["error"]
        assert status["detail"] == {"type": "MigrationError"}

        # A second call does not retry.
        await engine.initialize()
        assert engine.state is EngineState.FAILED

        page_status = await engine.get_page_status(URL)
        assert page_status["should_index"] is False
        assert page_status["error"]
        indexed = await engine.index_page({"title": "x"}, URL)
        assert indexed["ok"] is False
    finally:
        await engine.close()


async def test_page_status_for_new_and_indexed_pages(engine: ArchiveEngine) -> None:
    assert await engine.get_page_status(URL) == {"should_index": True}
    await engine.index_page({"title": "Article", "md_content": "# Article\n\nBody"}, URL, {"visited_at": 1_000})
    assert await engine.get_page_status(URL) == {"should_index": False}
    document = await engine.find_one(URL)
    # Status checks count as a visit.
    assert document.last_visit > 1_000


async def test_page_status_offers_pages_without_content(engine: ArchiveEngine) -> None:
    await engine.index_page({"title": "Bare", "text_content": "plain text only"}, URL)
    assert await engine.get_page_status(URL) == {"should_index": True}


async def test_page_status_invalid_url(engine: ArchiveEngine) -> None:
    result = await engine.get_page_status("not a url")
    assert result["should_index"] is False
    assert "Invalid URL" in result["error"]


async def test_index_page_creates_document_and_fragments(engine: ArchiveEngine) -> None:
    md = "# Article\n\nBody text"
    result = await engine.index_page(
        {
            "title": "Article",
            "excerpt": "Short",
            "md_content": md,
            "text_content": "Body text",
            "date": "2024-01-02T00:00:00Z",
            "extractor": "readability",
        },
        URL,
        {"visited_at": 86_400_000},
    )
    assert result == {"ok": True, "message": f"indexed doc:{sha256_text(md)}, url:{URL}"}
    document = await engine.find_one(URL)
    assert document.hostname == "example.com"
    assert document.md_content_hash == sha256_text(md)
    assert document.publication_date == 1_704_153_600_000
    assert document.last_visit == 86_400_000
    assert document.last_visit_date == "1970-01-02"
    assert document.extractor == "readability"
    # title, excerpt, url and one content chunk
    assert await _fragment_count(engine) == 4
    assert (await engine.index_parity())["ok"] is True


async def test_reindex_same_url_does_not_duplicate(engine: ArchiveEngine) -> None:
    page = {"title": "Article", "md_content": "# Article\n\nBody"}
    await engine.index_page(page, URL, {"visited_at": 1_000})
    before = await _fragment_count(engine)
    result = await engine.index_page(page, URL, {"visited_at": 2_000})
    assert result["ok"] is True
    assert await _fragment_count(engine) == before
    rows = await engine.db.query('SELECT "last_visit" FROM "document" WHERE "url" = ?', [URL])
    assert [row["last_visit"] for row in rows] == [2_000]


async def test_changed_content_updates_document(engine: ArchiveEngine) -> None:
    await engine.index_page({"title": "Article", "md_content": "first"}, URL)
    await engine.index_page({"title": "Article", "md_content": "second", "excerpt": "new"}, URL)
    document = await engine.find_one(URL)
    assert document.md_content == "second"
    assert document.md_content_hash == sha256_text("second")
    assert document.excerpt == "new"


async def test_markdown_used_when_text_missing(engine: ArchiveEngine) -> None:
    await engine.index_page({"title": "Marsupials", "md_content": "## Facts\n\nThe **kangaroo** hops."}, URL)
    payload = await engine.search("kangaroo")
    assert payload["count"] == 1
    assert payload["results"][0].attribute == "content"


async def test_hashing_failure_still_indexes(engine: ArchiveEngine, monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(_text: str) -> str:
        raise ValueError("cannot hash")

    monkeypatch.setattr("page_archive.ingest.pipeline.sha256_text", _fail)
    result = await engine.index_page({"title": "Article", "md_content": "# Body"}, URL)
    assert result == {"ok": True, "message": f"indexed doc:None, url:{URL}"}
    document = await engine.find_one(URL)
    assert document.md_content_hash is None


async def test_index_page_with_out_of_range_numbers(engine: ArchiveEngine) -> None:
    before = now_ms()
    result = await engine.index_page({"title": "t", "date": 10**20}, URL, {"visited_at": 10**20})
    assert result["ok"] is True
    document = await engine.find_one(URL)
    assert document.publication_date is None
    assert before <= document.last_visit <= MAX_TIMESTAMP_MS

    again = await engine.index_page({"title": "t", "date": 10**20}, URL, {"visited_at": 10**20})
    assert again["ok"] is True
    assert (await engine.get_page_status(URL))["should_index"] is True


async def test_find_one_storage_error_returns_none(
    engine: ArchiveEngine, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def _broken(_url: str) -> None:
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(engine.store, "find_by_url", _broken)
    assert await engine.find_one(URL) is None


def test_content_hash_handles_unencodable_text() -> None:
    assert content_hash("\ud800") is None
    assert content_hash("") is None
    assert content_hash("abc") == sha256_text("abc")


async def test_index_page_invalid_url(engine: ArchiveEngine) -> None:
    result = await engine.index_page({"title": "x"}, "/relative/path")
    assert result["ok"] is False
    assert "Invalid URL" in result["message"]


async def test_index_page_mirrors_to_staging(engine: ArchiveEngine) -> None:
    await engine.index_page({"title": "Article"}, URL)
    row = await engine.staging_db.query_one('SELECT COUNT(*) AS n FROM "document" WHERE "url" = ?', [URL])
    assert row["n"] == 1


async def test_nothing_to_index_writes_nothing(engine: ArchiveEngine) -> None:
    assert await engine.nothing_to_index(URL) == {"ok": True}
    assert await engine.find_one(URL) is None


async def test_rebuild_index(engine: ArchiveEngine) -> None:
    await engine.index_page({"title": "Article", "text_content": "body"}, URL)
    assert await engine.rebuild_index() == 3
    assert (await engine.index_parity())["entries"] == 3


def test_url_helpers() -> None:
    parsed = parse_page_url("https://Example.com:8443/a?b=c")
    assert parsed.hostname == "example.com"
    assert should_consider(parsed)
    assert not should_consider(parse_page_url("http://localhost:5183/"))
    assert not should_consider(parse_page_url("http://printer.local/"))
    assert not should_consider(parse_page_url("file://host/tmp/page.html"))
    with pytest.raises(ValueError):
        parse_page_url("https://example.com:99999/")


async def test_debug_engine(settings: Settings) -> None:
    settings.backend = "debug"
    engine = create_engine(settings)
    assert isinstance(engine, DebugEngine)
    await engine.initialize()
    assert engine.get_status() == {"ok": True}
    assert await engine.get_page_status(URL) == {"should_index": True}
    assert await engine.get_page_status("http://localhost/") == {"should_index": False}
    assert (await engine.index_page({"title": "x"}, URL))["ok"] is False
    assert (await engine.search("x"))["results"] == []
    assert not settings.db_path.exists()
    await engine.close()
