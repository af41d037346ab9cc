"""
Storage factory for creating store instances from settings.
"""

from docport.config.settings import Settings
from docport.storage.adapter import FileStore
from docport.storage.document_store import DocumentStore
from docport.storage.filesystem import FilesystemStorage
from docport.storage.mongo import MongoDocumentStore


def get_file_store(settings: Settings) -> FileStore:
    """
    Create the artifact store rooted at the configured output directory.

    Returns:
        FileStore instance (FilesystemStorage)
    """
    return FilesystemStorage(base_path=settings.output_dir)


def get_document_store(settings: Settings) -> DocumentStore:
    """
    Open a connection to the configured database.

    Raises:
        StoreConnectionError: If the server cannot be reached
    """
    return MongoDocumentStore(
        url=settings.mongodb_url,
        database_name=settings.db_name,
        server_selection_timeout_ms=settings.server_selection_timeout_ms,
    )
