"""
Document validator.

Checks a document against an inferred field schema, coercing values whose
observed type disagrees with the declared one. The caller's document is
never modified; the report carries a validated copy.
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableMapping, Optional

from docport.schema.coercer import TypeCoercer
from docport.schema.models import FieldMap, FieldSchema
from docport.schema.types import (
    TypeTag,
    classify_value,
    element_path,
    field_name,
    is_object,
    is_top_level,
)

logger = logging.getLogger(__name__)

# Declared types that carry no constraint worth enforcing
_UNCHECKED_TYPES = {TypeTag.NULL, TypeTag.UNDEFINED}


@dataclass
class ValidationReport:
    """Result of validating one document."""
    document: Dict[str, Any]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    casts_performed: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors


class DocumentValidator:
    """
    Validates documents against a flat path -> FieldSchema mapping.

    Top-level fields are taken from the mapping directly; nested objects are
    followed through FieldSchema.nested_fields and array elements through
    the `<path>[]` entry of the mapping.
    """

    def __init__(self, coercer: Optional[TypeCoercer] = None):
        self.coercer = coercer or TypeCoercer()

    def validate(self, document: Dict[str, Any], fields: FieldMap) -> ValidationReport:
        """
        Validate and coerce a single document.

        Args:
            document: Document to validate (left untouched)
            fields: Flat field schema as produced by infer_schema

        Returns:
            ValidationReport with the validated copy
        """
        report = ValidationReport(document=copy.deepcopy(document))
        top_level = {path: schema for path, schema in fields.items() if is_top_level(path)}
        self._validate_object(report.document, "", top_level, fields, report)
        return report

    def _validate_object(
        self,
        obj: MutableMapping[str, Any],
        parent: str,
        level: Dict[str, FieldSchema],
        fields: FieldMap,
        report: ValidationReport,
    ) -> None:
        for path, schema in level.items():
            key = field_name(parent, path)

            if key not in obj:
                if schema.required and not schema.nullable:
                    report.errors.append(f"Missing required field: {path}")
                continue

            obj[key] = self._validate_value(obj[key], path, schema, fields, report)

    def _validate_value(
        self,
        value: Any,
        path: str,
        schema: FieldSchema,
        fields: FieldMap,
        report: ValidationReport,
    ) -> Any:
        declared = schema.declared_type

        if value is None:
            if not schema.nullable and declared not in _UNCHECKED_TYPES:
                report.warnings.append(
                    f"Field {path}: null value for non-nullable {declared.value} field")
            return value

        value = self._check_type(value, path, declared, report)

        if declared == TypeTag.OBJECT and is_object(value) and schema.nested_fields:
            self._validate_object(value, path, schema.nested_fields, fields, report)
        elif declared == TypeTag.ARRAY and isinstance(value, list):
            self._validate_elements(value, path, schema, fields, report)

        return value

    def _validate_elements(
        self,
        items: List[Any],
        path: str,
        schema: FieldSchema,
        fields: FieldMap,
        report: ValidationReport,
    ) -> None:
        elements = element_path(path)
        element_type = schema.array_element_type
        element_schema = fields.get(elements)

        for index, item in enumerate(items):
            if item is None:
                continue
            if element_type and element_type not in _UNCHECKED_TYPES:
                item = self._check_type(item, f"{elements}[{index}]", element_type, report)
                items[index] = item
            if is_object(item) and element_schema and element_schema.nested_fields:
                self._validate_object(item, elements, element_schema.nested_fields, fields, report)

    def _check_type(
        self,
        value: Any,
        path: str,
        declared: TypeTag,
        report: ValidationReport,
    ) -> Any:
        observed = classify_value(value)
        if observed == declared or declared in _UNCHECKED_TYPES:
            return value

        result = self.coercer.try_coerce(value, declared)
        if result.ok:
            report.casts_performed += 1
            logger.info(
                f"Cast {path} from {observed.value} to {declared.value}",
                extra={"extra_fields": {"path": path, "from": observed.value,
                                        "to": declared.value}},
            )
            return result.value

        report.warnings.append(
            f"Field {path}: expected {declared.value}, got {observed.value} ({result.error})")
        return value
