"""Search tests over a live engine."""

from __future__ import annotations

from page_archive.engine import ArchiveEngine


async def _index(engine: ArchiveEngine, url: str, title: str, body: str) -> None:
    result = await engine.index_page({"title": title, "text_content": body}, url)
    assert result["ok"], result


async def test_search_highlights_matches(engine: ArchiveEngine) -> None:
    await _index(engine, "https://example.com/a", "Hello", "the quick brown fox")
    payload = await engine.search("fox")
    assert payload["ok"] is True
    assert payload["count"] == 1
    assert payload["perf_ms"] >= 0
    [row] = payload["results"]
    assert row.url == "https://example.com/a"
    assert row.hostname == "example.com"
    assert row.title == "Hello"
    assert row.attribute == "content"
    assert "<mark>fox</mark>" in row.snippet


async def test_search_matches_title_url_and_stems(engine: ArchiveEngine) -> None:
    await _index(engine, "https://birds.example/herons", "Herons", "Wading birds")
    payload = await engine.search("heron")
    assert {row.attribute for row in payload["results"]} == {"title", "url"}
    assert payload["count"] == 2


async def test_search_pagination_and_count(engine: ArchiveEngine) -> None:
    for i in range(5):
        await _index(engine, f"https://example.com/page-{i}", f"Doc {i}", f"zebra sighting number {i}")
    first = await engine.search("zebra", limit=2, offset=0)
    assert len(first["results"]) == 2
    assert first["count"] == 5
    last = await engine.search("zebra", limit=2, offset=4)
    assert len(last["results"]) == 1
    assert last["count"] == 5
    beyond = await engine.search("zebra", limit=2, offset=10)
    assert beyond["results"] == []
    assert beyond["count"] == 5
    seen = {row.rowid for page in (first, last) for row in page["results"]}
    assert len(seen) == 3


async def test_search_orders_by_document_recency(engine: ArchiveEngine) -> None:
    for i in range(3):
        await _index(engine, f"https://example.com/o-{i}", f"Doc {i}", "otter facts")
    oldest = await engine.find_one("https://example.com/o-0")
    await engine.store.touch(oldest.id, updated_at=4_102_444_800_000)
    payload = await engine.search("otter")
    assert payload["results"][0].url == "https://example.com/o-0"


async def test_search_default_limit(engine: ArchiveEngine) -> None:
    engine.settings.search_default_limit = 2
    for i in range(3):
        await _index(engine, f"https://example.com/l-{i}", f"Doc {i}", "lemur")
    payload = await engine.search("lemur")
    assert len(payload["results"]) == 2
    assert payload["count"] == 3


async def test_malformed_query_reports_error(engine: ArchiveEngine) -> None:
    payload = await engine.search('"unterminated')
    assert payload["ok"] is False
    assert payload["results"] == []
    assert payload["count"] == 0
    assert payload["error"]


async def test_search_without_matches(engine: ArchiveEngine) -> None:
    await _index(engine, "https://example.com/a", "Hello", "the quick brown fox")
    payload = await engine.search("giraffe")
    assert payload == {"ok": True, "results": [], "count": 0, "perf_ms": payload["perf_ms"]}
