"""
Document store configuration.
"""

from pydantic import BaseModel


class DatabaseConfig(BaseModel):
    """Document store configuration settings."""

    backend: str = "sqlite"
    db_path: str = "harmony_store.db"
    connection_timeout: float = 30.0

    def get_db_url(self) -> str:
        """Get SQLite URL for the document store."""
        return f"sqlite:///{self.db_path}"

    def is_in_memory(self) -> bool:
        """Check whether the store lives only in process memory."""
        return self.backend == "memory" or self.db_path == ":memory:"
