"""
Export and import runs.

Sequence schema inference, validation and projection over every
collection of a database.
"""

from docport.migration.exporter import ExportOrchestrator, ExportSummary
from docport.migration.importer import (
    ImportOrchestrator,
    ImportSummary,
    CollectionImportResult,
    ManifestMissingError,
    load_manifest,
)
from docport.migration.index_script import generate_index_script

__all__ = [
    "ExportOrchestrator",
    "ExportSummary",
    "ImportOrchestrator",
    "ImportSummary",
    "CollectionImportResult",
    "ManifestMissingError",
    "load_manifest",
    "generate_index_script",
]
