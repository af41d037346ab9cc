"""
In-process document store.

Keeps collections as lists of documents. Mirrors the parts of MongoDB
behaviour the export/import runs depend on: generated _id values, unique
_id per collection, unordered bulk inserts that report failed positions.
"""

import copy
from typing import Dict, List, Optional, Sequence

from bson import ObjectId

from docport.schema.models import CollectionStats, IndexSpec
from docport.storage.document_store import (
    BulkInsertError,
    Document,
    DocumentStore,
    DocumentStoreError,
)


class InMemoryDocumentStore(DocumentStore):
    """Document store kept entirely in memory."""

    def __init__(self, database_name: str = "test",
                 collections: Optional[Dict[str, List[Document]]] = None):
        self._database_name = database_name
        self.collections: Dict[str, List[Document]] = {}
        self.indexes: Dict[str, List[IndexSpec]] = {}
        self.closed = False
        for name, documents in (collections or {}).items():
            self.collections[name] = []
            for doc in documents:
                self._insert(name, doc)

    @property
    def database_name(self) -> str:
        return self._database_name

    def _insert(self, collection: str, document: Document) -> None:
        docs = self.collections.setdefault(collection, [])
        doc = copy.deepcopy(document)
        doc.setdefault("_id", ObjectId())
        if any(existing["_id"] == doc["_id"] for existing in docs):
            raise DocumentStoreError(f"Duplicate key _id={doc['_id']} in {collection}")
        docs.append(doc)

    def list_collection_names(self) -> List[str]:
        return sorted(self.collections)

    def count_documents(self, collection: str) -> Optional[int]:
        return len(self.collections.get(collection, []))

    def sample_documents(self, collection: str, limit: int) -> List[Document]:
        return copy.deepcopy(self.collections.get(collection, [])[:limit])

    def read_all_documents(self, collection: str) -> List[Document]:
        return copy.deepcopy(self.collections.get(collection, []))

    def collection_stats(self, collection: str) -> CollectionStats:
        raise DocumentStoreError("collStats is not supported by the in-memory store")

    def list_indexes(self, collection: str) -> List[IndexSpec]:
        return list(self.indexes.get(collection, []))

    def create_index(self, collection: str, spec: IndexSpec) -> None:
        existing = self.indexes.setdefault(collection, [])
        if any(index.name == spec.name for index in existing):
            raise DocumentStoreError(f"Index {spec.name} already exists on {collection}")
        existing.append(spec)

    def delete_all_documents(self, collection: str) -> int:
        removed = len(self.collections.get(collection, []))
        self.collections[collection] = []
        return removed

    def insert_many(self, collection: str, documents: Sequence[Document]) -> int:
        failed = []
        for index, doc in enumerate(documents):
            try:
                self._insert(collection, doc)
            except DocumentStoreError:
                failed.append(index)
        inserted = len(documents) - len(failed)
        if failed:
            raise BulkInsertError(
                f"Bulk insert into {collection} failed for {len(failed)} document(s)",
                inserted_count=inserted,
                failed_indexes=failed,
            )
        return inserted

    def insert_one(self, collection: str, document: Document) -> None:
        self._insert(collection, document)

    def drop_database(self) -> None:
        self.collections.clear()
        self.indexes.clear()

    def close(self) -> None:
        self.closed = True
