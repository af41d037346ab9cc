"""
Command-line entry points.

    docport-export    dump every collection, its schema and SQL to the output directory
    docport-import    load an export back into the database

Connection settings come from the environment (MONGODB_URL, DB_NAME) or a
.env file.
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from docport.common.logging_config import clear_run_id, set_run_id, setup_logging
from docport.config.settings import ConfigurationError, ImportOptions, Settings, get_settings
from docport.migration.exporter import ExportOrchestrator
from docport.migration.importer import ImportOrchestrator, ManifestMissingError, load_manifest
from docport.storage.adapter import StorageError
from docport.storage.document_store import DocumentStoreError, StoreConnectionError
from docport.storage.factory import get_document_store, get_file_store

logger = logging.getLogger("docport")


def build_export_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docport-export",
        description="Export all collections with inferred schemas and SQL migration scripts.",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def build_import_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docport-import",
        description="Import an export produced by docport-export.",
    )
    parser.add_argument("--no-recreate-db", dest="recreate_database", action="store_false",
                        help="Do not drop the database before importing")
    parser.add_argument("--no-indexes", dest="recreate_indexes", action="store_false",
                        help="Do not recreate indexes")
    parser.add_argument("--no-validate", dest="validate", action="store_false",
                        help="Insert documents as read, without schema validation")
    parser.add_argument("--no-clear", dest="clear_collections", action="store_false",
                        help="Do not clear target collections before inserting")
    parser.add_argument("--skip-invalid", action="store_true",
                        help="Do not insert documents missing required fields")
    parser.add_argument("--collections", default=None,
                        help="Comma-separated list of collections to import")
    parser.add_argument("--batch-size", type=int, default=None,
                        help="Documents per bulk insert (default BATCH_SIZE)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser


def _parse(parser: argparse.ArgumentParser, argv: Optional[Sequence[str]]) -> argparse.Namespace:
    args, unknown = parser.parse_known_args(argv)
    if unknown:
        logger.debug(f"Ignoring unknown arguments: {' '.join(unknown)}")
    return args


def _split_collections(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    if not value:
        return None
    names = tuple(name.strip() for name in value.split(",") if name.strip())
    return names or None


def build_import_options(args: argparse.Namespace, settings: Settings) -> ImportOptions:
    """Build the options for one import run from parsed flags and settings."""
    return ImportOptions(
        recreate_database=args.recreate_database,
        recreate_indexes=args.recreate_indexes,
        validate=args.validate,
        clear_collections=args.clear_collections,
        skip_invalid=args.skip_invalid,
        collections=_split_collections(args.collections),
        batch_size=args.batch_size or settings.batch_size,
    )


def _load_settings(log_level: Optional[str]) -> Settings:
    setup_logging(log_level or "INFO")
    settings = get_settings()
    setup_logging(log_level or settings.log_level, json_format=settings.log_json)
    return settings


def export_main(argv: Optional[List[str]] = None) -> int:
    args = _parse(build_export_parser(), argv)
    set_run_id()
    try:
        settings = _load_settings(args.log_level)
        files = get_file_store(settings)
        with get_document_store(settings) as store:
            summary = ExportOrchestrator(store, files, sample_size=settings.sample_size).run()
    except (ConfigurationError, StoreConnectionError, DocumentStoreError, StorageError) as e:
        logger.error(f"Export failed: {e}")
        return 1
    finally:
        clear_run_id()

    print(summary.format())
    return 0


def import_main(argv: Optional[List[str]] = None) -> int:
    args = _parse(build_import_parser(), argv)
    set_run_id()
    try:
        settings = _load_settings(args.log_level)
        options = build_import_options(args, settings)
        files = get_file_store(settings)
        manifest = load_manifest(files)
        with get_document_store(settings) as store:
            summary = ImportOrchestrator(store, files, options, manifest).run()
    except (ConfigurationError, ManifestMissingError, StoreConnectionError,
            DocumentStoreError, StorageError) as e:
        logger.error(f"Import failed: {e}")
        return 1
    finally:
        clear_run_id()

    print(summary.format())
    return 0


def run_export():
    sys.exit(export_main())


def run_import():
    sys.exit(import_main())


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "import":
        sys.exit(import_main(sys.argv[2:]))
    sys.exit(export_main(sys.argv[1:] if len(sys.argv) > 1 and sys.argv[1] == "export" else None))
