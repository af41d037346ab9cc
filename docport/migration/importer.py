"""
Import orchestrator.

Reads the manifest and JSON data written by an export run, validates and
coerces the documents against the persisted schema, inserts them in
batches and recreates indexes.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from docport.common.logging_config import PerformanceTracker
from docport.common.serialization import loads
from docport.config.settings import ImportOptions
from docport.migration.artifacts import DATABASE_SCHEMA_PATH, data_path
from docport.schema.models import CollectionSchema, DatabaseSchema
from docport.schema.validator import DocumentValidator
from docport.storage.adapter import FileStore, StorageError
from docport.storage.document_store import (
    BulkInsertError,
    Document,
    DocumentStore,
    DocumentStoreError,
)

logger = logging.getLogger(__name__)


class ManifestMissingError(Exception):
    """Raised when no export manifest is available. Fatal for a run."""
    pass


@dataclass
class CollectionImportResult:
    name: str
    documents_read: int = 0
    documents_imported: int = 0
    documents_skipped: int = 0
    invalid_documents: int = 0
    casts_performed: int = 0
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    batches_submitted: int = 0
    batches_degraded: int = 0
    indexes_created: int = 0
    index_failures: List[str] = field(default_factory=list)


@dataclass
class ImportSummary:
    """Run-level statistics of an import."""
    database_name: str
    collections: Dict[str, CollectionImportResult] = field(default_factory=dict)
    skipped_collections: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def _total(self, attribute: str) -> int:
        return sum(getattr(result, attribute) for result in self.collections.values())

    @property
    def documents_imported(self) -> int:
        return self._total("documents_imported")

    @property
    def documents_skipped(self) -> int:
        return self._total("documents_skipped")

    @property
    def casts_performed(self) -> int:
        return self._total("casts_performed")

    @property
    def warning_count(self) -> int:
        return sum(len(result.warnings) for result in self.collections.values())

    @property
    def error_count(self) -> int:
        return len(self.errors) + sum(len(result.errors) for result in self.collections.values())

    @property
    def indexes_created(self) -> int:
        return self._total("indexes_created")

    @property
    def index_failures(self) -> int:
        return sum(len(result.index_failures) for result in self.collections.values())

    def format(self) -> str:
        lines = [
            "=" * 60,
            "IMPORT SUMMARY",
            "=" * 60,
            f"Database: {self.database_name}",
            f"  • Collections imported: {len(self.collections)}",
            f"  • Collections skipped: {len(self.skipped_collections)}",
            f"  • Documents imported: {self.documents_imported}",
            f"  • Documents skipped: {self.documents_skipped}",
            f"  • Casts performed: {self.casts_performed}",
            f"  • Warnings: {self.warning_count}",
            f"  • Errors: {self.error_count}",
            f"  • Indexes created: {self.indexes_created}",
            f"  • Index failures: {self.index_failures}",
        ]
        lines.extend(f"    - {error}" for error in self.errors)
        for result in self.collections.values():
            lines.extend(f"    - {result.name}: {error}" for error in result.errors)
            lines.extend(f"    - {result.name}: {failure}" for failure in result.index_failures)
        lines.append("=" * 60)
        return "\n".join(lines)


def load_manifest(files: FileStore) -> DatabaseSchema:
    """
    Read the database schema written by the last export.

    Raises:
        ManifestMissingError: If the manifest is absent or unreadable
    """
    if not files.exists(DATABASE_SCHEMA_PATH):
        raise ManifestMissingError(
            f"{DATABASE_SCHEMA_PATH} not found; run an export first")
    try:
        return DatabaseSchema.from_json(files.read_text(DATABASE_SCHEMA_PATH))
    except (StorageError, ValueError) as e:
        raise ManifestMissingError(f"Cannot read {DATABASE_SCHEMA_PATH}: {e}") from e


class ImportOrchestrator:
    """Imports an exported database into a document store."""

    def __init__(
        self,
        store: DocumentStore,
        files: FileStore,
        options: ImportOptions,
        manifest: DatabaseSchema,
        validator: Optional[DocumentValidator] = None,
    ):
        """
        Initialize the importer.

        Args:
            store: Open document store to write to
            files: Artifact store holding the export
            options: Options for this run
            manifest: Database schema from load_manifest
            validator: Document validator (default DocumentValidator)
        """
        self.store = store
        self.files = files
        self.options = options
        self.manifest = manifest
        self.validator = validator or DocumentValidator()

    def run(self) -> ImportSummary:
        summary = ImportSummary(database_name=self.store.database_name)

        if self.options.recreate_database and self.options.collections:
            logger.warning(
                "Collection filter set; not dropping database "
                f"{self.store.database_name}, other collections are kept"
            )
        elif self.options.recreate_database:
            logger.info(f"Dropping database {self.store.database_name}")
            try:
                self.store.drop_database()
            except DocumentStoreError as e:
                logger.error(str(e))
                summary.errors.append(str(e))

        for name, collection_schema in self.manifest.collections.items():
            if not self.options.wants(name):
                continue
            try:
                documents = self._read_documents(name)
            except StorageError as e:
                summary.errors.append(f"{name}: {e}")
                summary.skipped_collections.append(name)
                continue
            if not documents:
                logger.warning(f"Skipped {name} (no documents)")
                summary.skipped_collections.append(name)
                continue

            with PerformanceTracker("import_collection", logger, collection=name):
                summary.collections[name] = self._import_collection(collection_schema, documents)

        if self.options.collections:
            for name in self.options.collections:
                if name not in self.manifest.collections:
                    summary.errors.append(f"{name}: not present in the export manifest")

        logger.info(
            f"Import finished: {summary.documents_imported} imported, "
            f"{summary.documents_skipped} skipped, {summary.casts_performed} cast(s)"
        )
        return summary

    def _import_collection(self, collection_schema: CollectionSchema,
                           documents: List[Document]) -> CollectionImportResult:
        name = collection_schema.name
        result = CollectionImportResult(name=name)

        logger.info(f"Importing collection: {name} ({len(documents)} documents)")
        result.documents_read = len(documents)

        if self.options.clear_collections:
            try:
                removed = self.store.delete_all_documents(name)
                logger.debug(f"Cleared {removed} document(s) from {name}")
            except DocumentStoreError as e:
                result.errors.append(f"Clearing collection failed: {e}")

        if self.options.validate:
            documents = self._validate_documents(documents, collection_schema, result)

        self._insert_in_batches(name, documents, result)

        if self.options.recreate_indexes:
            self._recreate_indexes(collection_schema, result)

        logger.info(f"Imported {result.documents_imported} document(s) into {name}")
        return result

    def _read_documents(self, name: str) -> List[Document]:
        """
        Load the exported documents of a collection.

        Raises:
            StorageError: If the data file is missing or not a JSON array
        """
        path = data_path(name)
        try:
            documents = loads(self.files.read_text(path))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Cannot parse {path}: {e}") from e
        if not isinstance(documents, list):
            raise StorageError(f"{path} does not contain a JSON array")
        return documents

    def _validate_documents(
        self,
        documents: List[Document],
        collection_schema: CollectionSchema,
        result: CollectionImportResult,
    ) -> List[Document]:
        validated = []
        for position, document in enumerate(documents):
            report = self.validator.validate(document, collection_schema.fields)
            result.casts_performed += report.casts_performed
            result.warnings.extend(f"document {position}: {w}" for w in report.warnings)

            if not report.is_valid:
                result.invalid_documents += 1
                result.errors.extend(f"document {position}: {e}" for e in report.errors)
                if self.options.skip_invalid:
                    result.documents_skipped += 1
                    continue

            validated.append(report.document)
        return validated

    def _insert_in_batches(self, name: str, documents: Sequence[Document],
                           result: CollectionImportResult) -> None:
        batch_size = max(1, self.options.batch_size)

        for start in range(0, len(documents), batch_size):
            batch = documents[start:start + batch_size]
            result.batches_submitted += 1
            try:
                result.documents_imported += self.store.insert_many(name, batch)
            except BulkInsertError as e:
                logger.warning(
                    f"Bulk insert of batch {start // batch_size + 1} into {name} failed, "
                    f"retrying one at a time: {e}"
                )
                result.batches_degraded += 1
                result.documents_imported += e.inserted_count
                self._insert_individually(name, batch, e.failed_indexes, start, result)

    def _insert_individually(
        self,
        name: str,
        batch: Sequence[Document],
        failed_indexes: Optional[List[int]],
        offset: int,
        result: CollectionImportResult,
    ) -> None:
        positions = failed_indexes if failed_indexes is not None else range(len(batch))
        for position in positions:
            try:
                self.store.insert_one(name, batch[position])
                result.documents_imported += 1
            except DocumentStoreError as e:
                result.documents_skipped += 1
                result.errors.append(f"document {offset + position}: insert failed: {e}")

    def _recreate_indexes(self, collection_schema: CollectionSchema,
                          result: CollectionImportResult) -> None:
        for index in collection_schema.indexes:
            try:
                self.store.create_index(collection_schema.name, index)
                result.indexes_created += 1
            except DocumentStoreError as e:
                logger.warning(f"Index {index.name} on {collection_schema.name} failed: {e}")
                result.index_failures.append(f"index {index.name}: {e}")

