"""Storage backends for table metadata access."""
from .base import StorageBackend, LocalStorage
from .factory import create_table_storage

__all__ = [
    "StorageBackend",
    "LocalStorage",
    "create_table_storage",
]
