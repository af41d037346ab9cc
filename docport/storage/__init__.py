"""
Storage backends.

Document stores hold the collections being exported or imported; file
stores hold the exported artifacts.
"""

from docport.storage.adapter import FileStore, StorageError
from docport.storage.filesystem import FilesystemStorage
from docport.storage.document_store import (
    BulkInsertError,
    DocumentStore,
    DocumentStoreError,
    StoreConnectionError,
)
from docport.storage.memory import InMemoryDocumentStore

__all__ = [
    "FileStore",
    "StorageError",
    "FilesystemStorage",
    "BulkInsertError",
    "DocumentStore",
    "DocumentStoreError",
    "StoreConnectionError",
    "InMemoryDocumentStore",
]
