"""
MongoDB document store backed by pymongo.
"""

import logging
from typing import List, Optional, Sequence

from pymongo import MongoClient
from pymongo.errors import BulkWriteError, PyMongoError

from docport.schema.models import CollectionStats, IndexSpec
from docport.storage.document_store import (
    BulkInsertError,
    Document,
    DocumentStore,
    DocumentStoreError,
    StoreConnectionError,
)

logger = logging.getLogger(__name__)

ID_INDEX_NAME = "_id_"


class MongoDocumentStore(DocumentStore):
    """Document store for a single MongoDB database."""

    def __init__(self, url: str, database_name: str, server_selection_timeout_ms: int = 5000):
        """
        Connect and verify the server is reachable.

        Args:
            url: MongoDB connection string
            database_name: Database to export from / import into
            server_selection_timeout_ms: How long to wait for a server

        Raises:
            StoreConnectionError: If the server cannot be reached
        """
        self._database_name = database_name
        try:
            self.client = MongoClient(url, serverSelectionTimeoutMS=server_selection_timeout_ms)
            self.client.admin.command("ping")
        except PyMongoError as e:
            raise StoreConnectionError(f"Cannot connect to MongoDB: {e}") from e
        self.db = self.client[database_name]
        logger.info(f"Connected to MongoDB database '{database_name}'")

    @property
    def database_name(self) -> str:
        return self._database_name

    def list_collection_names(self) -> List[str]:
        try:
            names = self.db.list_collection_names(filter={"type": "collection"})
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to list collections: {e}") from e
        return sorted(name for name in names if not name.startswith("system."))

    def count_documents(self, collection: str) -> Optional[int]:
        try:
            return self.db[collection].estimated_document_count()
        except PyMongoError as e:
            logger.debug(f"Document count unavailable for {collection}: {e}")
            return None

    def sample_documents(self, collection: str, limit: int) -> List[Document]:
        try:
            return list(self.db[collection].aggregate([{"$sample": {"size": limit}}]))
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to sample {collection}: {e}") from e

    def read_all_documents(self, collection: str) -> List[Document]:
        try:
            return list(self.db[collection].find({}))
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to read {collection}: {e}") from e

    def collection_stats(self, collection: str) -> CollectionStats:
        try:
            stats = self.db.command("collStats", collection)
        except PyMongoError as e:
            raise DocumentStoreError(f"Stats unavailable for {collection}: {e}") from e
        return CollectionStats(
            document_count=int(stats.get("count", 0)),
            avg_doc_size=float(stats.get("avgObjSize", 0)),
            total_size=int(stats.get("size", 0)),
        )

    def list_indexes(self, collection: str) -> List[IndexSpec]:
        try:
            infos = list(self.db[collection].list_indexes())
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to list indexes of {collection}: {e}") from e
        return [
            IndexSpec.from_index_info(info)
            for info in infos
            if info["name"] != ID_INDEX_NAME
        ]

    def create_index(self, collection: str, spec: IndexSpec) -> None:
        try:
            self.db[collection].create_index(list(spec.key.items()), **spec.creation_options())
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to create index {spec.name} on {collection}: {e}") from e

    def delete_all_documents(self, collection: str) -> int:
        try:
            return self.db[collection].delete_many({}).deleted_count
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to clear {collection}: {e}") from e

    def insert_many(self, collection: str, documents: Sequence[Document]) -> int:
        try:
            result = self.db[collection].insert_many(list(documents), ordered=False)
        except BulkWriteError as e:
            details = e.details or {}
            failed = sorted({err["index"] for err in details.get("writeErrors", [])})
            raise BulkInsertError(
                f"Bulk insert into {collection} failed for {len(failed)} document(s)",
                inserted_count=details.get("nInserted", 0),
                failed_indexes=failed or None,
            ) from e
        except PyMongoError as e:
            raise BulkInsertError(f"Bulk insert into {collection} failed: {e}") from e
        return len(result.inserted_ids)

    def insert_one(self, collection: str, document: Document) -> None:
        try:
            self.db[collection].insert_one(document)
        except PyMongoError as e:
            raise DocumentStoreError(f"Insert into {collection} failed: {e}") from e

    def drop_database(self) -> None:
        try:
            self.client.drop_database(self._database_name)
        except PyMongoError as e:
            raise DocumentStoreError(f"Failed to drop database {self._database_name}: {e}") from e

    def close(self) -> None:
        self.client.close()
        logger.info("MongoDB connection closed")
