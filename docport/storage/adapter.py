"""
Abstract base class for artifact storage backends.

Defines the interface export and import use to read and write the
JSON, schema and migration files.
"""

from abc import ABC, abstractmethod
from typing import List


class StorageError(Exception):
    """Exception raised for storage-related errors."""
    pass


class FileStore(ABC):
    """
    Abstract base class for artifact storage.

    Paths are relative to the backend's root, using forward slashes
    (e.g. 'schema/database_schema.json').
    """

    @abstractmethod
    def write_text(self, path: str, content: str) -> None:
        """
        Write a whole text file, replacing any existing content.

        Args:
            path: Relative path of the file
            content: Text to write

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def read_text(self, path: str) -> str:
        """
        Read a whole text file.

        Args:
            path: Relative path of the file

        Returns:
            File content

        Raises:
            StorageError: If the file is missing or unreadable
        """
        pass

    @abstractmethod
    def ensure_directory(self, path: str) -> None:
        """Create a directory (and parents) if it doesn't exist."""
        pass

    @abstractmethod
    def list_files(self, directory: str) -> List[str]:
        """
        List file names directly inside a directory.

        Args:
            directory: Relative directory path

        Returns:
            Sorted list of file names (not paths); empty if the directory is missing
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check if a file exists."""
        pass
