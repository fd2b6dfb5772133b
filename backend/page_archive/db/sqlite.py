"""Async SQLite connection management."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

import aiosqlite

DEFAULT_PRAGMAS = (
    "PRAGMA journal_mode=WAL;",
    "PRAGMA synchronous=NORMAL;",
    "PRAGMA foreign_keys=ON;",
    "PRAGMA temp_store=MEMORY;",
)


class SQLiteDatabase:
    """One aiosqlite connection with pragmatic defaults.

    Statements issued through this wrapper are serialized on the connection,
    and a ``transaction()`` block holds the connection until it commits or
    rolls back, so no other statement can observe or join a half-written
    transaction.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path).expanduser()
        self._connection: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def connect(self) -> aiosqlite.Connection:
        if self._connection is not None:
            return self._connection
        async with self._connect_lock:
            if self._connection is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                connection = await aiosqlite.connect(self.db_path)
                connection.row_factory = aiosqlite.Row
                for pragma in DEFAULT_PRAGMAS:
                    await connection.execute(pragma)
                self._connection = connection
        return self._connection

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "SQLiteDatabase":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()
        await self.close()

    async def commit(self) -> None:
        if self._connection is not None:
            await self._connection.commit()

    async def rollback(self) -> None:
        if self._connection is not None:
            await self._connection.rollback()

    async def execute_commit(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Execute a single write and commit it; returns the affected row count."""
        conn = await self.connect()
        async with self._lock:
            cursor = await conn.execute(sql, params or [])
            rowcount = cursor.rowcount
            await cursor.close()
            await conn.commit()
        return rowcount

    async def query(self, sql: str, params: Sequence[Any] | None = None) -> list[aiosqlite.Row]:
        conn = await self.connect()
        async with self._lock:
            async with conn.execute(sql, params or []) as cursor:
                return list(await cursor.fetchall())

    async def query_one(self, sql: str, params: Sequence[Any] | None = None) -> aiosqlite.Row | None:
        conn = await self.connect()
        async with self._lock:
            async with conn.execute(sql, params or []) as cursor:
                return await cursor.fetchone()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Cursor]:
        conn = await self.connect()
        async with self._lock:
            cursor = await conn.cursor()
            try:
                yield cursor
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                await cursor.close()


__all__ = ["SQLiteDatabase"]
