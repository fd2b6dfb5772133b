"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PageUrlRequest(BaseModel):
    url: str


class PagePayload(BaseModel):
    """Content extracted from a page by the hosting application."""

    title: str | None = None
    excerpt: str | None = None
    text_content: str | None = None
    md_content: str | None = None
    date: str | int | float | None = Field(default=None, description="Publication date")
    site_name: str | None = None
    extractor: str | None = None


class VisitMetadata(BaseModel):
    tab_id: int | None = None
    visited_at: int | None = Field(default=None, description="Visit time in epoch millis")


class IndexPageRequest(BaseModel):
    url: str
    page: PagePayload
    visit: VisitMetadata = Field(default_factory=VisitMetadata)


class StatusResponse(BaseModel):
    ok: bool
    error: str | None = None
    detail: dict[str, Any] | None = None


class PageStatusResponse(BaseModel):
    should_index: bool
    error: str | None = None


class IndexPageResponse(BaseModel):
    ok: bool
    message: str


class NothingToIndexResponse(BaseModel):
    ok: bool


class SearchResult(BaseModel):
    rowid: int
    entity_id: int
    attribute: str
    snippet: str
    url: str
    hostname: str | None = None
    title: str | None = None
    excerpt: str | None = None
    last_visit: int | None = None
    last_visit_date: str | None = None
    md_content_hash: str | None = None
    updated_at: int | None = None
    created_at: int


class SearchResponse(BaseModel):
    ok: bool
    results: list[SearchResult]
    count: int
    perf_ms: float
    error: str | None = None


class DocumentDetail(BaseModel):
    id: int
    url: str
    title: str | None = None
    excerpt: str | None = None
    md_content: str | None = None
    md_content_hash: str | None = None
    publication_date: int | None = None
    hostname: str | None = None
    last_visit: int | None = None
    last_visit_date: str | None = None
    extractor: str | None = None
    created_at: int
    updated_at: int | None = None


class IndexParityResponse(BaseModel):
    ok: bool
    fragments: int
    entries: int
    missing: list[int]
    orphaned: list[int]


class RebuildResponse(BaseModel):
    ok: bool
    entries: int


__all__ = [
    "DocumentDetail",
    "IndexPageRequest",
    "IndexPageResponse",
    "IndexParityResponse",
    "NothingToIndexResponse",
    "PagePayload",
    "PageStatusResponse",
    "PageUrlRequest",
    "RebuildResponse",
    "SearchResponse",
    "SearchResult",
    "StatusResponse",
    "VisitMetadata",
]
