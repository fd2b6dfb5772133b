"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from page_archive.core.config import Settings, get_settings
from page_archive.engine import ArchiveEngine, DebugEngine, create_engine

_ENGINE: ArchiveEngine | DebugEngine | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_engine() -> ArchiveEngine | DebugEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = create_engine(get_app_settings())
    return _ENGINE


async def reset_engine() -> None:
    """Close and forget the cached engine."""
    global _ENGINE
    if _ENGINE is not None:
        await _ENGINE.close()
    _ENGINE = None


__all__ = ["get_app_settings", "get_engine", "reset_engine"]
