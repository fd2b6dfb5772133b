"""Administrative routes for Page Archive."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from page_archive.api.dependencies import get_engine
from page_archive.core.metrics import metrics_response
from page_archive.engine import ArchiveEngine, EngineNotReady
from page_archive.models.dto import IndexParityResponse, RebuildResponse, StatusResponse

router = APIRouter()


@router.get("/status", response_model=StatusResponse, summary="Engine readiness")
async def get_status(engine: ArchiveEngine = Depends(get_engine)) -> StatusResponse:
    return StatusResponse(**engine.get_status())


@router.get("/index/parity", response_model=IndexParityResponse, summary="Compare fragments with the index")
async def get_index_parity(engine: ArchiveEngine = Depends(get_engine)) -> IndexParityResponse:
    try:
        payload = await engine.index_parity()
    except EngineNotReady as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return IndexParityResponse(**payload)


@router.post("/index/rebuild", response_model=RebuildResponse, summary="Rebuild the index from fragments")
async def post_index_rebuild(engine: ArchiveEngine = Depends(get_engine)) -> RebuildResponse:
    try:
        entries = await engine.rebuild_index()
    except EngineNotReady as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return RebuildResponse(ok=True, entries=entries)


@router.get("/metrics", summary="Prometheus metrics")
async def get_metrics():
    return metrics_response()


__all__ = ["router"]
