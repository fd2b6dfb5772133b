"""Test fixtures for Page Archive."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from page_archive.core.config import Settings  # noqa: E402
from page_archive.db.documents import DocumentStore  # noqa: E402
from page_archive.db.migrations import ALL_MIGRATIONS, migrate  # noqa: E402
from page_archive.db.sqlite import SQLiteDatabase  # noqa: E402
from page_archive.engine import ArchiveEngine  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset cached settings/engine and point storage at a temp dir."""
    monkeypatch.setenv("PGA_DB_PATH", str(tmp_path / "archive.sqlite"))
    monkeypatch.setenv("PGA_STAGING_DB_PATH", str(tmp_path / "archive.bak.sqlite"))
    monkeypatch.delenv("PGA_CONFIG", raising=False)
    monkeypatch.delenv("PGA_BACKEND", raising=False)

    from page_archive.api import dependencies as deps
    from page_archive.core import config

    config.get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._ENGINE = None
    yield
    config.get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._ENGINE = None


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        db_path=tmp_path / "engine.sqlite",
        staging_db_path=tmp_path / "engine.bak.sqlite",
        fragment_max_tokens=40,
        fragment_min_tokens=5,
    )


@pytest.fixture
async def database(tmp_path: Path) -> SQLiteDatabase:
    db = SQLiteDatabase(tmp_path / "primary.sqlite")
    yield db
    await db.close()


@pytest.fixture
async def migrated_db(database: SQLiteDatabase) -> SQLiteDatabase:
    await migrate(database, ALL_MIGRATIONS)
    return database


@pytest.fixture
async def staging_db(tmp_path: Path) -> SQLiteDatabase:
    db = SQLiteDatabase(tmp_path / "staging.sqlite")
    await migrate(db, ALL_MIGRATIONS)
    yield db
    await db.close()


@pytest.fixture
def store(migrated_db: SQLiteDatabase, staging_db: SQLiteDatabase) -> DocumentStore:
    return DocumentStore(migrated_db, staging=staging_db)


@pytest.fixture
async def engine(settings: Settings) -> ArchiveEngine:
    instance = ArchiveEngine(settings)
    await instance.initialize()
    yield instance
    await instance.close()


@pytest.fixture(scope="session")
def sample_text() -> str:
    return "Title\n\nParagraph one.\n\nParagraph two is here."
