"""
In-process document store.
"""

import asyncio
import copy
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from ..core.logging import get_logger
from .base import Document, DocumentStore, Transaction, matches_filters

T = TypeVar("T")

logger = get_logger("harmony.store")

_DELETED = object()


class _MemoryTransaction(Transaction):
    def __init__(self, store: "InMemoryDocumentStore"):
        self._store = store
        self._writes: Dict[Tuple[str, str], Any] = {}

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        pending = self._writes.get((collection, key))
        if pending is _DELETED:
            return None
        if pending is not None:
            return copy.deepcopy(pending)
        return self._store._read(collection, key)

    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        self._writes[(collection, key)] = copy.deepcopy(data)

    async def delete(self, collection: str, key: str) -> None:
        self._writes[(collection, key)] = _DELETED

    def _commit(self) -> None:
        for (collection, key), value in self._writes.items():
            bucket = self._store._data.setdefault(collection, {})
            if value is _DELETED:
                bucket.pop(key, None)
            else:
                bucket[key] = value


class InMemoryDocumentStore(DocumentStore):
    """Document store backed by a dict; one lock serializes all writes."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = copy.deepcopy(initial or {})
        self._lock = asyncio.Lock()

    def _read(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(collection, {}).get(key)
        return copy.deepcopy(value) if value is not None else None

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        return self._read(collection, key)

    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        results = [
            Document(key, copy.deepcopy(data))
            for key, data in self._data.get(collection, {}).items()
            if matches_filters(data, filters)
        ]
        return results[:limit] if limit is not None else results

    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        async with self._lock:
            self._data.setdefault(collection, {})[key] = copy.deepcopy(data)

    async def delete(self, collection: str, key: str) -> None:
        async with self._lock:
            self._data.get(collection, {}).pop(key, None)

    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        async with self._lock:
            txn = _MemoryTransaction(self)
            result = await fn(txn)
            txn._commit()
            logger.debug("Committed transaction with %d writes", len(txn._writes))
            return result

    def dump(self, collection: str) -> Dict[str, Dict[str, Any]]:
        """Snapshot of one collection."""
        return copy.deepcopy(self._data.get(collection, {}))
