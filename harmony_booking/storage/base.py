"""
Minimal transactional document store contract.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, TypeVar

T = TypeVar("T")


class Document(NamedTuple):
    """A stored document and its key."""

    key: str
    data: Dict[str, Any]


def matches_filters(data: Dict[str, Any], filters: Optional[Dict[str, Any]]) -> bool:
    """Equality match on top-level fields."""
    if not filters:
        return True
    return all(data.get(field) == value for field, value in filters.items())


class Transaction(ABC):
    """Operations available inside ``DocumentStore.run_transaction``.

    Reads observe writes made earlier in the same transaction. Nothing is
    visible to other callers until the callback returns; if it raises, every
    write is discarded.
    """

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, collection: str, key: str) -> None:
        ...


class DocumentStore(ABC):
    """Async document store keyed by (collection, key)."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> List[Document]:
        ...

    @abstractmethod
    async def set(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, collection: str, key: str) -> None:
        ...

    @abstractmethod
    async def run_transaction(self, fn: Callable[[Transaction], Awaitable[T]]) -> T:
        """Run ``fn`` atomically and serializably against the store."""
        ...

    async def ping(self) -> bool:
        await self.get("__health__", "ping")
        return True

    async def close(self) -> None:
        return None

    @staticmethod
    def new_key() -> str:
        """Generate a fresh document key."""
        return uuid.uuid4().hex[:20]
