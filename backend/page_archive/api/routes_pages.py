"""Page lifecycle routes used by the hosting application."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from page_archive.api.dependencies import get_engine
from page_archive.engine import ArchiveEngine
from page_archive.models.dto import (
    IndexPageRequest,
    IndexPageResponse,
    NothingToIndexResponse,
    PageStatusResponse,
    PageUrlRequest,
)

router = APIRouter()


@router.post("/status", response_model=PageStatusResponse, summary="Check whether a page needs indexing")
async def page_status(
    request: PageUrlRequest,
    engine: ArchiveEngine = Depends(get_engine),
) -> PageStatusResponse:
    payload = await engine.get_page_status(request.url)
    return PageStatusResponse(**payload)


@router.post("", response_model=IndexPageResponse, summary="Index extracted page content")
async def index_page(
    request: IndexPageRequest,
    engine: ArchiveEngine = Depends(get_engine),
) -> IndexPageResponse:
    payload = await engine.index_page(
        request.page.model_dump(),
        request.url,
        request.visit.model_dump(),
    )
    return IndexPageResponse(**payload)


@router.post("/skip", response_model=NothingToIndexResponse, summary="Acknowledge a non-indexable page")
async def nothing_to_index(
    request: PageUrlRequest,
    engine: ArchiveEngine = Depends(get_engine),
) -> NothingToIndexResponse:
    payload = await engine.nothing_to_index(request.url)
    return NothingToIndexResponse(**payload)


__all__ = ["router"]
