"""
Type tags and field-path helpers.

Every decoded document value maps to exactly one TypeTag. Identifier and
temporal values are recognised by the concrete types the BSON decoder
produces (bson.ObjectId, datetime), never by name.
"""

from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from bson import ObjectId
from bson.decimal128 import Decimal128


class TypeTag(str, Enum):
    """Enumeration of semantic value types."""
    NULL = "null"
    UNDEFINED = "undefined"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT_ID = "object-id"
    ARRAY = "array"
    OBJECT = "object"


# Tie-break order when two tags are equally frequent at a path.
TYPE_PRIORITY = (
    TypeTag.STRING,
    TypeTag.NUMBER,
    TypeTag.BOOLEAN,
    TypeTag.DATE,
    TypeTag.OBJECT_ID,
    TypeTag.OBJECT,
    TypeTag.ARRAY,
    TypeTag.NULL,
    TypeTag.UNDEFINED,
)


class _Missing:
    """Sentinel for a field that is absent from its document."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

ARRAY_MARKER = "[]"


def classify_value(value: Any) -> TypeTag:
    """
    Classify a decoded value.

    Args:
        value: Any value produced by the JSON or BSON decoder

    Returns:
        TypeTag for the value
    """
    if value is MISSING:
        return TypeTag.UNDEFINED
    if value is None:
        return TypeTag.NULL
    # bool is a subclass of int
    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, (int, float, Decimal, Decimal128)):
        return TypeTag.NUMBER
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, date):
        return TypeTag.DATE
    if isinstance(value, ObjectId):
        return TypeTag.OBJECT_ID
    if isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    return TypeTag.OBJECT


def is_object(value: Any) -> bool:
    return isinstance(value, Mapping)


def child_path(parent: str, key: str) -> str:
    """Path of field `key` inside the object at `parent`."""
    return f"{parent}.{key}" if parent else key


def element_path(path: str) -> str:
    """Path standing for the elements of the array at `path`."""
    return f"{path}{ARRAY_MARKER}"


def field_name(parent: str, path: str) -> str:
    """Inverse of child_path: the last segment of `path` under `parent`."""
    return path[len(parent) + 1:] if parent else path


def is_element_path(path: str) -> bool:
    return path.endswith(ARRAY_MARKER)


def is_top_level(path: str) -> bool:
    return "." not in path and ARRAY_MARKER not in path
