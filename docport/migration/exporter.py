"""
Export orchestrator.

Dumps every collection of the connected database to JSON, infers its
schema, and derives SQL and index-recreation scripts.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from docport.common.logging_config import PerformanceTracker
from docport.common.serialization import dumps_pretty
from docport.migration.artifacts import (
    COMPLETE_MIGRATION_PATH,
    DATA_DIR,
    DATABASE_SCHEMA_PATH,
    MIGRATION_DIR,
    SCHEMA_DIR,
    collection_schema_path,
    data_path,
    migration_path,
)
from docport.migration.index_script import INDEX_SCRIPT_NAME, generate_index_script
from docport.schema.ddl_generator import ColumnCollisionError, DDLGenerator
from docport.schema.models import CollectionSchema, CollectionStats, DatabaseSchema
from docport.schema.schema_analyzer import infer_schema
from docport.storage.adapter import FileStore, StorageError
from docport.storage.document_store import DocumentStore, DocumentStoreError

logger = logging.getLogger(__name__)


@dataclass
class ExportSummary:
    """Run-level statistics of an export."""
    database_name: str
    collections_exported: List[str] = field(default_factory=list)
    collections_skipped: List[str] = field(default_factory=list)
    documents_exported: int = 0
    errors: List[str] = field(default_factory=list)

    def format(self) -> str:
        lines = [
            "=" * 60,
            "EXPORT SUMMARY",
            "=" * 60,
            f"Database: {self.database_name}",
            f"  • Collections exported: {len(self.collections_exported)}",
            f"  • Collections skipped: {len(self.collections_skipped)}",
            f"  • Documents exported: {self.documents_exported}",
            f"  • Errors: {len(self.errors)}",
        ]
        lines.extend(f"    - {error}" for error in self.errors)
        lines.append("=" * 60)
        return "\n".join(lines)


class ExportOrchestrator:
    """Exports all collections of a database to a file store."""

    def __init__(
        self,
        store: DocumentStore,
        files: FileStore,
        sample_size: int = 1000,
        ddl_generator: Optional[DDLGenerator] = None,
    ):
        """
        Initialize the exporter.

        Args:
            store: Open document store to read from
            files: Artifact store to write to
            sample_size: Documents sampled per collection for schema inference
            ddl_generator: SQL projector (default DDLGenerator)
        """
        self.store = store
        self.files = files
        self.sample_size = sample_size
        self.ddl_generator = ddl_generator or DDLGenerator()

    def run(self) -> ExportSummary:
        """
        Export every collection.

        Per-collection failures are recorded in the summary; errors listing
        the collections or writing the final manifest propagate.
        """
        summary = ExportSummary(database_name=self.store.database_name)
        database_schema = DatabaseSchema(
            database_name=self.store.database_name,
            exported_at=datetime.now(timezone.utc),
        )
        sql_sections: List[str] = []

        for directory in (DATA_DIR, SCHEMA_DIR, MIGRATION_DIR):
            self.files.ensure_directory(directory)

        names = self.store.list_collection_names()
        logger.info(f"Found {len(names)} collection(s) in {self.store.database_name}")

        for name in names:
            try:
                with PerformanceTracker("export_collection", logger, collection=name):
                    collection_schema = self._export_collection(name, summary, sql_sections)
            except (DocumentStoreError, StorageError) as e:
                summary.errors.append(f"{name}: {e}")
                continue
            except (TypeError, ValueError) as e:
                logger.error(f"Cannot encode documents of {name}: {e}")
                summary.errors.append(f"{name}: cannot encode documents: {e}")
                continue
            if collection_schema is not None:
                database_schema.collections[name] = collection_schema

        database_schema.total_collections = len(database_schema.collections)

        self.files.write_text(DATABASE_SCHEMA_PATH, database_schema.to_json())
        self.files.write_text(COMPLETE_MIGRATION_PATH, self._complete_migration(
            database_schema, sql_sections))
        self.files.write_text(f"{MIGRATION_DIR}/{INDEX_SCRIPT_NAME}",
                              generate_index_script(database_schema))

        logger.info(
            f"Export finished: {len(summary.collections_exported)} collection(s), "
            f"{summary.documents_exported} document(s)"
        )
        return summary

    def _export_collection(
        self,
        name: str,
        summary: ExportSummary,
        sql_sections: List[str],
    ) -> Optional[CollectionSchema]:
        count = self.store.count_documents(name)
        logger.info(f"Exporting collection: {name}"
                    + (f" ({count} documents)" if count is not None else ""))

        sample = self.store.sample_documents(name, self.sample_size)
        if not sample:
            logger.warning(f"Skipped {name} (no documents)")
            summary.collections_skipped.append(name)
            return None

        collection_schema = CollectionSchema(
            name=name,
            fields=infer_schema(sample),
            indexes=self.store.list_indexes(name),
            stats=self._stats(name),
        )
        self.files.write_text(collection_schema_path(name), collection_schema.to_json())

        documents = self.store.read_all_documents(name)
        self.files.write_text(data_path(name), dumps_pretty(documents))
        summary.documents_exported += len(documents)
        summary.collections_exported.append(name)

        try:
            ddl, rows = self.ddl_generator.project(name, collection_schema.fields)
            section = "\n".join([f"-- Collection: {name}", ddl, "", *rows(documents), ""])
        except (ColumnCollisionError, TypeError, ValueError) as e:
            logger.error(f"SQL projection of {name} failed: {e}")
            summary.errors.append(f"{name}: {e}")
            return collection_schema

        self.files.write_text(migration_path(name), section)
        sql_sections.append(section)

        logger.info(f"Exported {len(documents)} document(s) from {name}")
        return collection_schema

    def _stats(self, name: str) -> CollectionStats:
        try:
            return self.store.collection_stats(name)
        except DocumentStoreError as e:
            logger.debug(f"Using empty stats for {name}: {e}")
            return CollectionStats()

    def _complete_migration(self, database_schema: DatabaseSchema, sections: List[str]) -> str:
        header = [
            f"-- Migration for database {database_schema.database_name}",
            f"-- Exported at {database_schema.exported_at.isoformat()}",
            f"-- Collections: {database_schema.total_collections}",
            "",
        ]
        return "\n".join(header + sections)
