"""
Integration tests for the import orchestrator.
"""

import pytest
from bson.regex import Regex
from bson.timestamp import Timestamp

from docport.config.settings import ImportOptions
from docport.migration.exporter import ExportOrchestrator
from docport.migration.importer import ImportOrchestrator, ManifestMissingError, load_manifest
from docport.schema.models import IndexSpec
from docport.storage.document_store import BulkInsertError
from docport.storage.memory import InMemoryDocumentStore


class RecordingStore(InMemoryDocumentStore):
    """Remembers how documents were submitted."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.batch_sizes = []
        self.single_inserts = []

    def insert_many(self, collection, documents):
        self.batch_sizes.append(len(documents))
        return super().insert_many(collection, documents)

    def insert_one(self, collection, document):
        self.single_inserts.append(document["_id"])
        super().insert_one(collection, document)


class OpaqueBulkStore(RecordingStore):
    """Bulk inserts fail without saying which documents were affected."""

    def insert_many(self, collection, documents):
        self.batch_sizes.append(len(documents))
        raise BulkInsertError("connection reset")


def export(file_store, collections, indexes=None):
    source = InMemoryDocumentStore("shop", collections)
    for name, specs in (indexes or {}).items():
        for spec in specs:
            source.create_index(name, spec)
    ExportOrchestrator(source, file_store).run()
    return load_manifest(file_store)


def run_import(store, file_store, **options):
    manifest = load_manifest(file_store)
    return ImportOrchestrator(store, file_store, ImportOptions(**options), manifest).run()


class TestRoundTrip:
    """Export then import restores the original documents."""

    def test_documents_are_restored(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store)

        assert target.collections["users"] == user_documents
        assert summary.documents_imported == 3
        # _id and joined are cast back in every document
        assert summary.casts_performed == 6
        assert summary.warning_count == 0
        assert summary.error_count == 0

    def test_indexes_are_recreated(self, user_documents, file_store):
        spec = IndexSpec(name="name_1", key={"name": 1}, unique=True)
        export(file_store, {"users": user_documents}, indexes={"users": [spec]})
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store)

        assert target.list_indexes("users") == [spec]
        assert summary.indexes_created == 1

    def test_database_is_dropped_first(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = InMemoryDocumentStore("shop", {"stale": [{"x": 1}]})

        run_import(target, file_store)

        assert target.list_collection_names() == ["users"]

    def test_existing_database_is_kept(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = InMemoryDocumentStore("shop", {"stale": [{"x": 1}]})

        run_import(target, file_store, recreate_database=False)

        assert target.list_collection_names() == ["stale", "users"]

    def test_collection_filter_keeps_other_collections(self, user_documents, file_store):
        export(file_store, {"users": user_documents, "orders": [{"_id": 1}]})
        target = InMemoryDocumentStore("shop", {"stale": [{"x": 1}]})

        run_import(target, file_store, collections=("users",))

        assert target.list_collection_names() == ["stale", "users"]
        assert target.collections["stale"] == [{"x": 1}]

    def test_collections_are_cleared_before_insert(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = InMemoryDocumentStore("shop", {"users": [{"_id": "old"}]})

        summary = run_import(target, file_store, recreate_database=False)

        assert len(target.collections["users"]) == 3
        assert summary.documents_skipped == 0

    def test_without_validation_values_stay_as_exported(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store, validate=False)

        assert target.collections["users"][0]["_id"] == "65a1b2c3d4e5f60718293a4b"
        assert summary.casts_performed == 0

    def test_uncommon_bson_types_are_restored(self, file_store):
        documents = [{"_id": 1, "ts": Timestamp(1700000000, 1), "re": Regex("^a", "i")}]
        export(file_store, {"events": documents})
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store)

        restored = target.collections["events"][0]
        assert restored["ts"] == Timestamp(1700000000, 1)
        assert isinstance(restored["re"], Regex)
        assert restored["re"].pattern == "^a"
        assert summary.error_count == 0


class TestBatching:

    def test_failed_batch_falls_back_to_single_inserts(self, file_store):
        export(file_store, {"items": [{"_id": i, "n": i} for i in range(2500)]})
        target = RecordingStore("shop", {"items": [{"_id": 1500, "n": -1}]})

        summary = run_import(
            target, file_store,
            recreate_database=False, clear_collections=False, validate=False,
            recreate_indexes=False, batch_size=1000,
        )

        result = summary.collections["items"]
        assert target.batch_sizes == [1000, 1000, 500]
        assert target.single_inserts == [1500]
        assert result.batches_submitted == 3
        assert result.batches_degraded == 1
        assert result.documents_imported == 2499
        assert result.documents_skipped == 1
        assert result.errors == [
            "document 1500: insert failed: Duplicate key _id=1500 in items"]
        assert len(target.collections["items"]) == 2500

    def test_unknown_failures_retry_whole_batch(self, file_store):
        export(file_store, {"items": [{"_id": i} for i in range(5)]})
        target = OpaqueBulkStore("shop")

        summary = run_import(target, file_store, batch_size=2)

        result = summary.collections["items"]
        assert target.batch_sizes == [2, 2, 1]
        assert target.single_inserts == [0, 1, 2, 3, 4]
        assert result.documents_imported == 5
        assert result.batches_degraded == 3

    def test_batch_size_larger_than_collection(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        target = RecordingStore("shop")

        run_import(target, file_store, batch_size=1000)

        assert target.batch_sizes == [3]


class TestValidationPolicy:

    @pytest.fixture
    def exported(self, file_store):
        export(file_store, {"people": [{"_id": 1, "email": "a@x.io"}, {"_id": 2, "email": "b@x.io"}]})
        file_store.write_text(
            "data/people.json",
            '[{"_id": 1, "email": "a@x.io"}, {"_id": 2}, {"_id": "3", "email": "c@x.io"}]',
        )
        return file_store

    def test_invalid_documents_are_inserted_by_default(self, exported):
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, exported)

        result = summary.collections["people"]
        assert result.invalid_documents == 1
        assert result.errors == ["document 1: Missing required field: email"]
        assert result.documents_imported == 3
        assert result.casts_performed == 1
        assert target.collections["people"][2]["_id"] == 3

    def test_skip_invalid(self, exported):
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, exported, skip_invalid=True)

        result = summary.collections["people"]
        assert result.documents_imported == 2
        assert result.documents_skipped == 1
        assert [doc["_id"] for doc in target.collections["people"]] == [1, 3]


class TestRunLevelErrors:

    def test_collection_filter(self, user_documents, file_store):
        export(file_store, {"users": user_documents, "orders": [{"_id": 1}]})
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store, collections=("users", "ghosts"))

        assert list(summary.collections) == ["users"]
        assert "orders" not in target.collections
        assert summary.errors == ["ghosts: not present in the export manifest"]

    def test_missing_data_file(self, user_documents, file_store, tmp_path):
        export(file_store, {"users": user_documents, "orders": [{"_id": 1}]})
        (tmp_path / "exports" / "data" / "orders.json").unlink()
        target = InMemoryDocumentStore("shop")

        summary = run_import(target, file_store)

        assert summary.skipped_collections == ["orders"]
        assert summary.errors[0].startswith("orders: File not found")
        assert summary.documents_imported == 3

    def test_empty_data_file(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        file_store.write_text("data/users.json", "[]")

        summary = run_import(InMemoryDocumentStore("shop"), file_store)

        assert summary.skipped_collections == ["users"]
        assert summary.errors == []

    def test_data_file_must_be_an_array(self, user_documents, file_store):
        export(file_store, {"users": user_documents})
        file_store.write_text("data/users.json", '{"not": "a list"}')

        summary = run_import(InMemoryDocumentStore("shop"), file_store)

        assert summary.skipped_collections == ["users"]
        assert "does not contain a JSON array" in summary.errors[0]

    def test_index_failure_is_not_fatal(self, user_documents, file_store):
        spec = IndexSpec(name="name_1", key={"name": 1})
        export(file_store, {"users": user_documents}, indexes={"users": [spec]})
        target = InMemoryDocumentStore("shop")
        target.create_index("users", spec)

        summary = run_import(target, file_store, recreate_database=False)

        result = summary.collections["users"]
        assert result.documents_imported == 3
        assert result.indexes_created == 0
        assert len(result.index_failures) == 1
        assert summary.index_failures == 1

    def test_summary_format(self, user_documents, file_store):
        export(file_store, {"users": user_documents})

        text = run_import(InMemoryDocumentStore("shop"), file_store).format()

        assert "IMPORT SUMMARY" in text
        assert "Documents imported: 3" in text
        assert "Casts performed: 6" in text


class TestLoadManifest:

    def test_missing_manifest(self, file_store):
        with pytest.raises(ManifestMissingError):
            load_manifest(file_store)

    def test_unreadable_manifest(self, file_store):
        file_store.write_text("schema/database_schema.json", "{not json")

        with pytest.raises(ManifestMissingError):
            load_manifest(file_store)

    def test_manifest_without_required_keys(self, file_store):
        file_store.write_text("schema/database_schema.json", '{"collections": {}}')

        with pytest.raises(ManifestMissingError):
            load_manifest(file_store)
