"""
DDL Generator for SQL Schemas.

Projects an inferred collection schema onto a flat relational table:
CREATE TABLE statements with mapped column types, and INSERT statements
for the exported documents.
"""

import math
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Tuple

from bson.decimal128 import Decimal128

from docport.common.serialization import dumps, to_utc
from docport.schema.models import FieldMap
from docport.schema.types import (
    ARRAY_MARKER,
    TypeTag,
    child_path,
    classify_value,
    element_path,
    is_element_path,
    is_object,
    is_top_level,
)

SYNTHETIC_PRIMARY_KEY = "id"
PRIMARY_KEY_FIELDS = ("_id", "id")

RowWriter = Callable[[Iterable[Mapping[str, Any]]], Iterator[str]]


class ColumnCollisionError(Exception):
    """Raised when two field paths flatten to the same column name."""

    def __init__(self, column: str, first_path: str, second_path: str):
        self.column = column
        self.paths = (first_path, second_path)
        super().__init__(
            f"Field paths '{first_path}' and '{second_path}' both map to column '{column}'"
        )


def flatten_document(doc: Mapping[str, Any], parent: str = "") -> Dict[str, Any]:
    """
    Flatten a document to a dictionary of field paths.

    Uses the same path rules as schema inference. Values found below an
    array marker are collected into a list, one entry per array element.

    Args:
        doc: The document to flatten
        parent: Current path prefix

    Returns:
        Dictionary mapping paths to values
    """
    result: Dict[str, Any] = {}
    _flatten_into(result, doc, parent, collect=False)
    return result


def _flatten_into(result: Dict[str, Any], obj: Mapping[str, Any], parent: str, collect: bool) -> None:
    for key, value in obj.items():
        path = child_path(parent, key)

        if collect:
            result.setdefault(path, []).append(value)
        else:
            result[path] = value

        if is_object(value):
            _flatten_into(result, value, path, collect)
        elif isinstance(value, list):
            elements = element_path(path)
            for item in value:
                if is_object(item):
                    _flatten_into(result, item, elements, collect=True)


def format_sql_literal(value: Any) -> str:
    """
    Render a value as an SQL literal.

    Args:
        value: Any decoded document value

    Returns:
        Literal text suitable for a VALUES clause
    """
    kind = classify_value(value)

    if kind in (TypeTag.NULL, TypeTag.UNDEFINED):
        return "NULL"
    if kind == TypeTag.BOOLEAN:
        return "1" if value else "0"
    if kind == TypeTag.NUMBER:
        # NaN and infinities have no SQL literal
        return dumps(value) if _is_finite(value) else "NULL"
    if kind == TypeTag.DATE:
        if not isinstance(value, datetime):
            value = datetime(value.year, value.month, value.day)
        return _quote(to_utc(value).strftime("%Y-%m-%d %H:%M:%S"))
    if kind in (TypeTag.ARRAY, TypeTag.OBJECT):
        return _quote(dumps(value))
    return _quote(str(value))


def _quote(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def _is_finite(number: Any) -> bool:
    if isinstance(number, Decimal128):
        number = number.to_decimal()
    if isinstance(number, Decimal):
        return number.is_finite()
    if isinstance(number, int):
        return True
    return math.isfinite(number)


class DDLGenerator:
    """
    Generates SQL DDL (Data Definition Language) statements.

    Every non-element field path becomes one column. Nested objects and arrays
    are also kept whole as JSON text columns.
    """

    TYPE_MAPPING = {
        TypeTag.STRING: "TEXT",
        TypeTag.NUMBER: "DECIMAL(18,6)",
        TypeTag.BOOLEAN: "BOOLEAN",
        TypeTag.DATE: "DATETIME",
        TypeTag.OBJECT_ID: "VARCHAR(24)",
        TypeTag.ARRAY: "TEXT",
        TypeTag.OBJECT: "TEXT",
        TypeTag.NULL: "TEXT",
        TypeTag.UNDEFINED: "TEXT",
    }

    RESERVED_WORDS = {"user", "group", "order", "table", "index", "key",
                      "value", "default", "select", "from", "where"}

    def _map_type_to_sql(self, type_tag: TypeTag) -> str:
        return self.TYPE_MAPPING.get(type_tag, "TEXT")

    def sanitize_column_name(self, path: str) -> str:
        """
        Flatten a field path into an SQL-safe column name.

        Args:
            path: Field path such as "tags[].name"

        Returns:
            Column name such as "tags_array_name"
        """
        name = path.replace(".", "_")
        name = name.replace(ARRAY_MARKER, "_array")
        name = name.lower()
        name = "".join(c if c.isalnum() or c == "_" else "_" for c in name)

        if not name:
            name = "col"
        if name[0].isdigit():
            name = f"col_{name}"
        if name in self.RESERVED_WORDS:
            name = f"{name}_col"

        return name

    def sanitize_table_name(self, collection_name: str) -> str:
        return self.sanitize_column_name(collection_name)

    def build_columns(self, fields: FieldMap) -> Dict[str, str]:
        """
        Map each projectable field path to its column name.

        Raises:
            ColumnCollisionError: If two paths flatten to the same column
        """
        columns: Dict[str, str] = {}
        owners: Dict[str, str] = {}

        for path in fields:
            if is_element_path(path):
                continue
            column = self.sanitize_column_name(path)
            if column in owners:
                raise ColumnCollisionError(column, owners[column], path)
            owners[column] = path
            columns[path] = column

        return columns

    def generate_table_ddl(self, table_name: str, fields: FieldMap) -> str:
        """
        Generate CREATE TABLE DDL statement.

        Args:
            table_name: Name for the table
            fields: Flat field schema

        Returns:
            Complete CREATE TABLE SQL statement
        """
        columns = self.build_columns(fields)
        primary_key = next((p for p in PRIMARY_KEY_FIELDS if p in columns), None)
        definitions: List[str] = []

        if primary_key is None:
            if SYNTHETIC_PRIMARY_KEY in columns.values():
                clash = next(p for p, c in columns.items() if c == SYNTHETIC_PRIMARY_KEY)
                raise ColumnCollisionError(SYNTHETIC_PRIMARY_KEY, "<primary key>", clash)
            definitions.append(f"    {SYNTHETIC_PRIMARY_KEY} INTEGER PRIMARY KEY")

        for path, column in columns.items():
            schema = fields[path]
            sql_type = self._map_type_to_sql(schema.declared_type)

            if path == primary_key:
                constraint = " PRIMARY KEY"
            elif is_top_level(path) and schema.required and not schema.nullable:
                constraint = " NOT NULL"
            else:
                constraint = ""

            definitions.append(f"    {column} {sql_type}{constraint}")

        lines = [
            f"CREATE TABLE IF NOT EXISTS {table_name} (",
            ",\n".join(definitions),
            ");",
        ]
        return "\n".join(lines)

    def generate_insert_statements(
        self,
        table_name: str,
        fields: FieldMap,
        documents: Iterable[Mapping[str, Any]],
    ) -> Iterator[str]:
        """
        Yield one INSERT statement per document.

        Columns missing from a document are left out of its statement rather
        than padded with NULL.
        """
        columns = self.build_columns(fields)

        for doc in documents:
            flat = flatten_document(doc)
            names = []
            values = []
            for path, column in columns.items():
                if path not in flat:
                    continue
                names.append(column)
                values.append(format_sql_literal(flat[path]))

            if not names:
                continue

            yield (f"INSERT INTO {table_name} ({', '.join(names)}) "
                   f"VALUES ({', '.join(values)});")

    def project(self, collection_name: str, fields: FieldMap) -> Tuple[str, RowWriter]:
        """
        Project a collection schema onto a relational table.

        Returns:
            Tuple of (CREATE TABLE text, function mapping documents to INSERT statements)

        Raises:
            ColumnCollisionError: If two paths flatten to the same column
        """
        table_name = self.sanitize_table_name(collection_name)
        ddl = self.generate_table_ddl(table_name, fields)
        return ddl, partial(self.generate_insert_statements, table_name, fields)
