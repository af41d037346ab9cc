"""
Schema module for document collections.

Provides type classification, schema inference, type coercion, document
validation and relational projection.
"""

from docport.schema.types import TypeTag, classify_value, MISSING
from docport.schema.models import (
    FieldSchema,
    IndexSpec,
    CollectionStats,
    CollectionSchema,
    DatabaseSchema,
)
from docport.schema.schema_analyzer import SchemaAnalyzer, FieldStats, infer_schema
from docport.schema.coercer import TypeCoercer, CoercionError, CoercionResult
from docport.schema.validator import DocumentValidator, ValidationReport
from docport.schema.ddl_generator import (
    DDLGenerator,
    ColumnCollisionError,
    flatten_document,
    format_sql_literal,
)

__all__ = [  # ruff: noqa: RUF022
    # Classification
    "TypeTag",
    "classify_value",
    "MISSING",
    # Models
    "FieldSchema",
    "IndexSpec",
    "CollectionStats",
    "CollectionSchema",
    "DatabaseSchema",
    # Inference
    "SchemaAnalyzer",
    "FieldStats",
    "infer_schema",
    # Coercion and validation
    "TypeCoercer",
    "CoercionError",
    "CoercionResult",
    "DocumentValidator",
    "ValidationReport",
    # Relational projection
    "DDLGenerator",
    "ColumnCollisionError",
    "flatten_document",
    "format_sql_literal",
]
