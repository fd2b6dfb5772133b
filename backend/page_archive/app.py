"""FastAPI application setup for Page Archive."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from page_archive.api.dependencies import get_app_settings, get_engine, reset_engine
from page_archive.api.routes_admin import router as admin_router
from page_archive.api.routes_pages import router as pages_router
from page_archive.api.routes_query import router as query_router
from page_archive.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="Page Archive",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=r"^(chrome|moz)-extension://.*$",
    allow_origins=[
        "http://127.0.0.1:5183",
        "http://localhost:5183",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(pages_router, prefix="/pages", tags=["pages"])
app.include_router(query_router, prefix="", tags=["query"])
app.include_router(admin_router, prefix="", tags=["admin"])


@app.on_event("startup")
async def startup() -> None:
    """Open the stores and run migrations before serving."""
    get_app_settings()
    engine = get_engine()
    try:
        await engine.initialize()
    except Exception:  # noqa: BLE001 - surfaced through /status
        logger.error("Engine failed to initialize: %s", engine.get_status().get("error"))


@app.on_event("shutdown")
async def shutdown() -> None:
    await reset_engine()


@app.get("/health", tags=["admin"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}
