"""
Abstract base class for document store backends.

Defines the operations the export and import runs need from the
database holding the collections.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from docport.schema.models import CollectionStats, IndexSpec

Document = Dict[str, Any]


class DocumentStoreError(Exception):
    """Exception raised when a single store operation fails."""
    pass


class StoreConnectionError(DocumentStoreError):
    """Raised when the store cannot be reached. Fatal for a run."""
    pass


class BulkInsertError(DocumentStoreError):
    """
    Raised by an unordered bulk insert that partly failed.

    Attributes:
        inserted_count: Number of documents that were written
        failed_indexes: Positions (within the batch) of documents that were not
            written, or None when the backend cannot tell
    """

    def __init__(self, message: str, inserted_count: int = 0,
                 failed_indexes: Optional[List[int]] = None):
        super().__init__(message)
        self.inserted_count = inserted_count
        self.failed_indexes = failed_indexes


class DocumentStore(ABC):
    """
    Abstract base class for document stores.

    Stores are context managers; leaving the block closes the connection
    whether or not the run succeeded.
    """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    @abstractmethod
    def database_name(self) -> str:
        pass

    @abstractmethod
    def list_collection_names(self) -> List[str]:
        pass

    @abstractmethod
    def count_documents(self, collection: str) -> Optional[int]:
        """Best-effort document count; None when unavailable."""
        pass

    @abstractmethod
    def sample_documents(self, collection: str, limit: int) -> List[Document]:
        pass

    @abstractmethod
    def read_all_documents(self, collection: str) -> List[Document]:
        pass

    @abstractmethod
    def collection_stats(self, collection: str) -> CollectionStats:
        """
        Raises:
            DocumentStoreError: If the backend cannot report stats
        """
        pass

    @abstractmethod
    def list_indexes(self, collection: str) -> List[IndexSpec]:
        """List secondary indexes, excluding the implicit _id index."""
        pass

    @abstractmethod
    def create_index(self, collection: str, spec: IndexSpec) -> None:
        pass

    @abstractmethod
    def delete_all_documents(self, collection: str) -> int:
        pass

    @abstractmethod
    def insert_many(self, collection: str, documents: Sequence[Document]) -> int:
        """
        Insert documents without ordering guarantees.

        Returns:
            Number of documents inserted

        Raises:
            BulkInsertError: If any document failed
        """
        pass

    @abstractmethod
    def insert_one(self, collection: str, document: Document) -> None:
        pass

    @abstractmethod
    def drop_database(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
