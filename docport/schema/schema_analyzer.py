"""
Document Schema Analyzer.

Walks sampled documents, counts the observed type of every field path and
reduces the counts to one FieldSchema per path.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from docport.schema.models import FieldMap, FieldSchema
from docport.schema.types import (
    TYPE_PRIORITY,
    TypeTag,
    child_path,
    classify_value,
    element_path,
    is_element_path,
    is_object,
)

ROOT = ""


class FieldStats:
    """Statistics for a single field path."""

    def __init__(self, path: str):
        self.path = path
        self.type_counts: Dict[TypeTag, int] = defaultdict(int)
        self.presence_count = 0

    def add_value(self, type_tag: TypeTag) -> None:
        """Record a value observation for this field."""
        self.presence_count += 1
        self.type_counts[type_tag] += 1

    @property
    def null_count(self) -> int:
        return self.type_counts.get(TypeTag.NULL, 0)

    def get_dominant_type(self) -> Tuple[TypeTag, int]:
        """
        Get the most common type and its count.

        Ties go to the tag listed first in TYPE_PRIORITY.

        Returns:
            Tuple of (dominant_type, count)
        """
        if not self.type_counts:
            return (TypeTag.NULL, 0)

        dominant = max(
            self.type_counts.items(),
            key=lambda item: (item[1], -TYPE_PRIORITY.index(item[0])),
        )
        return dominant


class SchemaAnalyzer:
    """
    Analyzer for document collections.

    Every observed path gets a FieldStats entry. Containers (the document
    root, objects, and object elements of arrays) are counted too, so that a
    field can be marked required when it appears in every instance of its
    parent.
    """

    def __init__(self):
        self.field_stats: Dict[str, FieldStats] = {}
        self.container_counts: Dict[str, int] = defaultdict(int)
        self.documents_analyzed = 0

    def analyze_document(self, doc: Mapping[str, Any]) -> None:
        """Analyze a single document."""
        self.documents_analyzed += 1
        self._walk_object(doc, ROOT)

    def analyze_batch(self, documents: Iterable[Mapping[str, Any]]) -> None:
        for doc in documents:
            self.analyze_document(doc)

    def _record(self, path: str, value: Any) -> TypeTag:
        type_tag = classify_value(value)
        if path not in self.field_stats:
            self.field_stats[path] = FieldStats(path)
        self.field_stats[path].add_value(type_tag)
        return type_tag

    def _walk_object(self, obj: Mapping[str, Any], parent: str) -> None:
        self.container_counts[parent] += 1

        for key, value in obj.items():
            path = child_path(parent, key)
            type_tag = self._record(path, value)

            if type_tag == TypeTag.OBJECT and is_object(value):
                self._walk_object(value, path)
            elif type_tag == TypeTag.ARRAY and value:
                self._walk_array(value, path)

    def _walk_array(self, items: List[Any], path: str) -> None:
        elements = element_path(path)
        for item in items:
            self._record(elements, item)
            if is_object(item):
                self._walk_object(item, elements)

    def build_fields(self) -> FieldMap:
        """
        Reduce the collected statistics to a flat path -> FieldSchema map.

        Returns:
            Mapping ordered by first observation of each path
        """
        fields: FieldMap = {}

        for path, stats in self.field_stats.items():
            declared, count = stats.get_dominant_type()
            fields[path] = FieldSchema(
                declared_type=declared,
                nullable=stats.null_count > 0,
                sample_count=count,
                required=self._is_required(path, stats),
            )

        for path, schema in fields.items():
            if schema.declared_type == TypeTag.OBJECT:
                schema.nested_fields = {
                    child: fields[child]
                    for child in fields
                    if self._parent_of(child) == path and not is_element_path(child)
                }
            elif schema.declared_type == TypeTag.ARRAY:
                elements = fields.get(element_path(path))
                schema.array_element_type = (
                    elements.declared_type if elements else TypeTag.UNDEFINED
                )

        return fields

    def _is_required(self, path: str, stats: FieldStats) -> bool:
        if is_element_path(path):
            return False
        return stats.presence_count >= self.container_counts.get(self._parent_of(path), 0)

    def _parent_of(self, path: str) -> str:
        if is_element_path(path):
            return path[:-2]
        dot = path.rfind(".")
        return path[:dot] if dot >= 0 else ROOT

    def get_summary(self) -> Dict[str, Any]:
        return {
            "documents_analyzed": self.documents_analyzed,
            "total_fields": len(self.field_stats),
            "fields": {
                path: {
                    "dominant_type": stats.get_dominant_type()[0].value,
                    "presence": stats.presence_count,
                    "null_count": stats.null_count,
                }
                for path, stats in self.field_stats.items()
            },
        }


def infer_schema(documents: Iterable[Mapping[str, Any]]) -> FieldMap:
    """
    Infer a flat field schema from a document sample.

    An empty sample yields an empty mapping; callers should treat that as
    "skip this collection".
    """
    analyzer = SchemaAnalyzer()
    analyzer.analyze_batch(documents)
    return analyzer.build_fields()
