"""Query API routes."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from page_archive.api.dependencies import get_engine
from page_archive.engine import ArchiveEngine, EngineNotReady
from page_archive.models.dto import DocumentDetail, SearchResponse, SearchResult

router = APIRouter()


@router.get("/search", response_model=SearchResponse, summary="Full-text search over indexed pages")
async def search(
    q: str = Query(..., min_length=1, description="FTS5 match expression"),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
    engine: ArchiveEngine = Depends(get_engine),
) -> SearchResponse:
    payload = await engine.search(q, limit=limit, offset=offset)
    results = [SearchResult(**asdict(row)) for row in payload["results"]]
    return SearchResponse(**{**payload, "results": results})


@router.get("/documents", response_model=DocumentDetail, summary="Fetch the document stored for a URL")
async def find_document(
    url: str = Query(..., min_length=1),
    engine: ArchiveEngine = Depends(get_engine),
) -> DocumentDetail:
    try:
        document = await engine.find_one(url)
    except EngineNotReady as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if document is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return DocumentDetail(**document.to_dict())


__all__ = ["router"]
