"""
Base storage abstraction for table metadata access.

Provides the listing and byte-level access the table views need.
All paths are relative to the storage root (the table base directory).
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List, Dict, Any

logger = logging.getLogger(__name__)


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    All implementations must support:
    - Path operations relative to a root (table base directory)
    - Read/write bytes
    - Listing files with size information
    """

    def __init__(self, base_path: str):
        """
        Initialize storage backend.

        Args:
            base_path: Root path for all operations
        """
        self.base_path = base_path

    @abstractmethod
    def write_bytes(self, data: bytes, path: str) -> str:
        """
        Write bytes to storage.

        Args:
            data: Bytes to write
            path: Relative path from base_path

        Returns:
            Full path where data was written
        """
        pass

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """
        Read bytes from storage.

        Args:
            path: Relative path from base_path

        Returns:
            File contents as bytes
        """
        pass

    @abstractmethod
    def list_files(
        self,
        path: str = "",
        pattern: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        List files directly under a directory.

        Args:
            path: Relative directory path from base_path
            pattern: Optional glob pattern (e.g., "*.parquet")

        Returns:
            List of file info dicts with keys: path, name, size, modified
        """
        pass

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Return backend type identifier."""
        pass

    def join_path(self, *parts: str) -> str:
        """
        Join path components using forward slashes.

        Args:
            *parts: Path components

        Returns:
            Joined path with forward slashes
        """
        clean_parts = [p.strip("/") for p in parts if p]
        return "/".join(clean_parts)


class LocalStorage(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: str):
        """
        Initialize local storage.

        Args:
            base_path: Table base directory (created if missing)
        """
        super().__init__(base_path)
        self.base_dir = Path(base_path).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        return "local"

    def _resolve_path(self, path: str) -> Path:
        """Convert relative path to absolute local path."""
        return self.base_dir / path

    def write_bytes(self, data: bytes, path: str) -> str:
        full_path = self._resolve_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_bytes(data)
        return str(full_path)

    def read_bytes(self, path: str) -> bytes:
        return self._resolve_path(path).read_bytes()

    def list_files(
        self,
        path: str = "",
        pattern: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        full_path = self._resolve_path(path)

        if not full_path.exists():
            return []

        result = []
        for f in full_path.glob(pattern or "*"):
            if f.is_file():
                stat = f.stat()
                result.append({
                    "path": f.relative_to(self.base_dir).as_posix(),
                    "name": f.name,
                    "size": stat.st_size,
                    "modified": stat.st_mtime,
                })

        return result
