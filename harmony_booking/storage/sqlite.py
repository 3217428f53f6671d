"""
SQLite-backed document store.
"""

import asyncio
import json
import sqlite3
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from ..core.exceptions import StoreUnavailableError
from ..core.logging import get_logger
from .base import Document, DocumentStore, Transaction, matches_filters

T = TypeVar("T")

logger = get_logger("harmony.store")


class _SQLiteTransaction(Transaction):
    """Runs on one connection inside ``BEGIN IMMEDIATE``."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        def _fetch() -> Optional[str]:
            cur = self._conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            )
            row = cur.fetchone()
            return row[0] if row else None

        raw = await _guard(asyncio.to_thread(_fetch))
        return json.loads(raw) if raw is not None else None

    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        payload = json.dumps(data)

        def _write() -> None:
            self._conn.execute(
                "INSERT OR REPLACE INTO documents (collection, key, data) VALUES (?, ?, ?)",
                (collection, key, payload),
            )

        await _guard(asyncio.to_thread(_write))

    async def delete(self, collection: str, key: str) -> None:
        def _delete() -> None:
            self._conn.execute(
                "DELETE FROM documents WHERE collection = ? AND key = ?",
                (collection, key),
            )

        await _guard(asyncio.to_thread(_delete))


async def _guard(awaitable: Awaitable[T]) -> T:
    try:
        return await awaitable
    except sqlite3.Error as e:
        logger.exception("SQLite operation failed")
        raise StoreUnavailableError(f"Document store error: {e}") from e


class SQLiteDocumentStore(DocumentStore):
    """Document store persisted in a single SQLite table.

    Blocking sqlite3 calls run in worker threads. Transactions take an
    in-process lock and ``BEGIN IMMEDIATE`` so that concurrent
    check-and-reserve attempts, including ones from other processes sharing
    the file, are serialized.
    """

    def __init__(self, db_path: str, timeout: float = 30.0):
        self.db_path = db_path
        self.timeout = timeout
        self._lock = asyncio.Lock()
        self._ready = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        return conn

    async def _ensure_table(self) -> None:
        """Ensure the documents table exists."""
        if self._ready:
            return

        def _create_table() -> None:
            conn = self._connect()
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        collection TEXT NOT NULL,
                        key TEXT NOT NULL,
                        data TEXT NOT NULL,
                        PRIMARY KEY (collection, key)
                    )
                    """
                )
            finally:
                conn.close()

        await _guard(asyncio.to_thread(_create_table))
        self._ready = True

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        await self._ensure_table()

        def _fetch() -> Optional[str]:
            conn = self._connect()
            try:
                cur = conn.execute(
                    "SELECT data FROM documents WHERE collection = ? AND key = ?",
                    (collection, key),
                )
                row = cur.fetchone()
            finally:
                conn.close()
            return row[0] if row else None

        raw = await _guard(asyncio.to_thread(_fetch))
        return json.loads(raw) if raw is not None else None

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        await self._ensure_table()

        def _fetch_all() -> List[tuple]:
            conn = self._connect()
            try:
                cur = conn.execute(
                    "SELECT key, data FROM documents WHERE collection = ? ORDER BY rowid",
                    (collection,),
                )
                return cur.fetchall()
            finally:
                conn.close()

        rows = await _guard(asyncio.to_thread(_fetch_all))
        results: List[Document] = []
        for key, raw in rows:
            data = json.loads(raw)
            if matches_filters(data, filters):
                results.append(Document(key, data))
                if limit is not None and len(results) >= limit:
                    break
        return results

    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        await self._ensure_table()
        payload = json.dumps(data)

        async with self._lock:
            def _write() -> None:
                conn = self._connect()
                try:
                    conn.execute(
                        "INSERT OR REPLACE INTO documents (collection, key, data) VALUES (?, ?, ?)",
                        (collection, key, payload),
                    )
                finally:
                    conn.close()

            await _guard(asyncio.to_thread(_write))

    async def delete(self, collection: str, key: str) -> None:
        await self._ensure_table()

        async with self._lock:
            def _delete() -> None:
                conn = self._connect()
                try:
                    conn.execute(
                        "DELETE FROM documents WHERE collection = ? AND key = ?",
                        (collection, key),
                    )
                finally:
                    conn.close()

            await _guard(asyncio.to_thread(_delete))

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        await self._ensure_table()

        async with self._lock:
            conn = await _guard(asyncio.to_thread(self._connect))
            try:
                await _guard(asyncio.to_thread(conn.execute, "BEGIN IMMEDIATE"))
                try:
                    result = await fn(_SQLiteTransaction(conn))
                except BaseException:
                    await _guard(asyncio.to_thread(conn.execute, "ROLLBACK"))
                    raise
                await _guard(asyncio.to_thread(conn.execute, "COMMIT"))
                return result
            finally:
                await asyncio.to_thread(conn.close)

    async def ping(self) -> bool:
        await self._ensure_table()

        def _select_one() -> None:
            conn = self._connect()
            try:
                conn.execute("SELECT 1").fetchone()
            finally:
                conn.close()

        await _guard(asyncio.to_thread(_select_one))
        return True
