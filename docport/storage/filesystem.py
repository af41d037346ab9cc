"""
Filesystem storage backend implementation.

Stores export artifacts in a local directory structure:
- data/{collection}.json - raw documents
- schema/{collection}_schema.json, schema/database_schema.json - inferred schemas
- migration/ - SQL and index recreation scripts
"""

from pathlib import Path
from typing import List

from docport.storage.adapter import FileStore, StorageError


class FilesystemStorage(FileStore):
    """
    Filesystem-based artifact storage.

    All paths are resolved under base_path; paths escaping it are rejected.
    """

    def __init__(self, base_path: str = "./exports"):
        """
        Initialize filesystem storage.

        Args:
            base_path: Root directory for all artifacts
        """
        self.base_path = Path(base_path).resolve()

    def _resolve(self, path: str) -> Path:
        """
        Convert a relative path to an absolute filesystem path.

        Raises:
            StorageError: If the path points outside base_path
        """
        target = (self.base_path / path).resolve()
        if target != self.base_path and self.base_path not in target.parents:
            raise StorageError(f"Path escapes storage root: {path}")
        return target

    def write_text(self, path: str, content: str) -> None:
        """Write a whole text file."""
        try:
            target = self._resolve(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

    def read_text(self, path: str) -> str:
        """Read a whole text file."""
        try:
            target = self._resolve(path)
            if not target.is_file():
                raise StorageError(f"File not found: {path}")
            return target.read_text(encoding="utf-8")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def ensure_directory(self, path: str) -> None:
        """Create a directory if it doesn't exist."""
        try:
            self._resolve(path).mkdir(parents=True, exist_ok=True)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create directory {path}: {e}") from e

    def list_files(self, directory: str) -> List[str]:
        """List file names directly inside a directory."""
        try:
            target = self._resolve(directory)
            if not target.is_dir():
                return []
            return sorted(p.name for p in target.iterdir() if p.is_file())
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list files in {directory}: {e}") from e

    def exists(self, path: str) -> bool:
        """Check if a file exists."""
        return self._resolve(path).is_file()
