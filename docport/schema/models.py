"""
Persisted schema models.

These are the shapes written to schema/<collection>_schema.json and
schema/database_schema.json. Keys are camelCase on disk.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docport.common.serialization import dumps_pretty
from docport.schema.types import TypeTag


class _SchemaModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return dumps_pretty(self.to_dict())

    @classmethod
    def from_json(cls, text: str):
        return cls.model_validate(json.loads(text))


class FieldSchema(_SchemaModel):
    """Inferred schema of a single field path."""
    declared_type: TypeTag
    nullable: bool = False
    sample_count: int = 0
    required: bool = False
    # Present only when declared_type is OBJECT; keyed by full child path
    nested_fields: Optional[Dict[str, "FieldSchema"]] = None
    # Present only when declared_type is ARRAY
    array_element_type: Optional[TypeTag] = None


FieldSchema.model_rebuild()

FieldMap = Dict[str, FieldSchema]


class IndexSpec(_SchemaModel):
    """A secondary index to recreate on import."""
    name: str
    key: Dict[str, Any]
    unique: bool = False
    sparse: bool = False
    partial_filter_expression: Optional[Dict[str, Any]] = None

    @classmethod
    def from_index_info(cls, info: Dict[str, Any]) -> "IndexSpec":
        """Build from a listIndexes entry."""
        return cls(
            name=info["name"],
            key=dict(info["key"]),
            unique=bool(info.get("unique", False)),
            sparse=bool(info.get("sparse", False)),
            partial_filter_expression=info.get("partialFilterExpression"),
        )

    def creation_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"name": self.name}
        if self.unique:
            options["unique"] = True
        if self.sparse:
            options["sparse"] = True
        if self.partial_filter_expression:
            options["partialFilterExpression"] = self.partial_filter_expression
        return options


class CollectionStats(_SchemaModel):
    document_count: int = 0
    avg_doc_size: float = 0
    total_size: int = 0


class CollectionSchema(_SchemaModel):
    name: str
    fields: Dict[str, FieldSchema] = Field(default_factory=dict)
    indexes: List[IndexSpec] = Field(default_factory=list)
    stats: CollectionStats = Field(default_factory=CollectionStats)


class DatabaseSchema(_SchemaModel):
    """The import manifest produced by one export run."""
    database_name: str
    collections: Dict[str, CollectionSchema] = Field(default_factory=dict)
    exported_at: datetime
    total_collections: int = 0
