"""
Storage-related exceptions.
"""


class StorageError(Exception):
    """Base exception for document store failures."""
    pass


class StoreUnavailableError(StorageError):
    """Exception raised when the document store cannot be reached."""
    pass
