"""
Document storage backends.
"""

from ..config import DatabaseConfig
from . import collections
from .base import Document, DocumentStore, Transaction
from .memory import InMemoryDocumentStore
from .sqlite import SQLiteDocumentStore


def create_store(config: DatabaseConfig) -> DocumentStore:
    """Build the configured document store backend."""
    if config.is_in_memory():
        return InMemoryDocumentStore()
    return SQLiteDocumentStore(config.db_path, timeout=config.connection_timeout)


__all__ = [
    "collections",
    "create_store",
    "Document",
    "DocumentStore",
    "Transaction",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
]
