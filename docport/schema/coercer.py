"""
Type coercion.

Converts a value to a target TypeTag or fails with CoercionError. The
validator goes through try_coerce, which reports failures as a result value
so that a single bad field never aborts a document.
"""

import json
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from bson import ObjectId
from bson.decimal128 import Decimal128

from docport.common.serialization import dumps, format_iso, to_utc
from docport.schema.types import TypeTag, classify_value, is_object

OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)
DECIMAL_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$", re.ASCII)
INFINITY_PATTERN = re.compile(r"^[+-]?inf(inity)?$", re.IGNORECASE)

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off"}

# Numbers at or above this are epoch milliseconds, below it epoch seconds.
MILLISECONDS_THRESHOLD = 10_000_000_000

# Key used when a scalar has to be wrapped into an object.
WRAPPED_VALUE_KEY = "value"


class CoercionError(Exception):
    """Raised when a value cannot be converted to the target type."""

    def __init__(self, value: Any, target: TypeTag, reason: str):
        self.value = value
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot coerce {value!r} to {target.value}: {reason}")


@dataclass
class CoercionResult:
    """Outcome of a coercion attempt."""
    ok: bool
    value: Any = None
    error: Optional[str] = None


def _to_number(value: Any) -> Any:
    if isinstance(value, Decimal128):
        value = value.to_decimal()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def _epoch_millis(value: date) -> int:
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return int(to_utc(value).timestamp() * 1000)


def parse_date_string(text: str) -> datetime:
    """Parse an ISO-8601 date or datetime. Naive results are taken as UTC."""
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    return to_utc(parsed)


class TypeCoercer:
    """Best-effort conversion between TypeTags."""

    def coerce(self, value: Any, target: TypeTag) -> Any:
        """
        Convert a value to the target type.

        Args:
            value: Value to convert
            target: TypeTag to convert to

        Returns:
            The converted value (the value itself if already of that type)

        Raises:
            CoercionError: If no conversion rule applies
        """
        if target == TypeTag.STRING:
            return self._to_string(value)
        if target == TypeTag.NUMBER:
            return self._to_number(value)
        if target == TypeTag.BOOLEAN:
            return self._to_boolean(value)
        if target == TypeTag.DATE:
            return self._to_date(value)
        if target == TypeTag.OBJECT_ID:
            return self._to_object_id(value)
        if target == TypeTag.ARRAY:
            return self._to_array(value)
        if target == TypeTag.OBJECT:
            return self._to_object(value)
        raise CoercionError(value, target, "no conversion to this type")

    def try_coerce(self, value: Any, target: TypeTag) -> CoercionResult:
        try:
            return CoercionResult(ok=True, value=self.coerce(value, target))
        except CoercionError as e:
            return CoercionResult(ok=False, value=value, error=str(e))

    def _to_string(self, value: Any) -> str:
        kind = classify_value(value)
        if kind == TypeTag.STRING:
            return value
        if kind == TypeTag.BOOLEAN:
            return "true" if value else "false"
        if kind == TypeTag.NUMBER:
            return str(_to_number(value))
        if kind == TypeTag.DATE:
            return format_iso(value)
        if kind == TypeTag.OBJECT_ID:
            return str(value)
        if kind in (TypeTag.ARRAY, TypeTag.OBJECT):
            try:
                return dumps(value)
            except (TypeError, ValueError) as e:
                raise CoercionError(value, TypeTag.STRING, str(e)) from e
        return str(value)

    def _to_number(self, value: Any) -> Any:
        kind = classify_value(value)
        if kind == TypeTag.NUMBER:
            return value
        if kind == TypeTag.BOOLEAN:
            return 1 if value else 0
        if kind == TypeTag.DATE:
            return _epoch_millis(value)
        if kind == TypeTag.STRING:
            text = value.strip()
            if INTEGER_PATTERN.match(text):
                try:
                    return int(text)
                except ValueError as e:
                    # digit count above sys.get_int_max_str_digits()
                    raise CoercionError(value, TypeTag.NUMBER, str(e)) from e
            if DECIMAL_PATTERN.match(text) or INFINITY_PATTERN.match(text):
                return float(text)
            raise CoercionError(value, TypeTag.NUMBER, "not a number")
        raise CoercionError(value, TypeTag.NUMBER, f"unsupported source type {kind.value}")

    def _to_boolean(self, value: Any) -> bool:
        kind = classify_value(value)
        if kind == TypeTag.BOOLEAN:
            return value
        if kind == TypeTag.STRING:
            text = value.strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
            raise CoercionError(value, TypeTag.BOOLEAN, "unrecognised boolean string")
        if kind == TypeTag.NUMBER:
            return _to_number(value) != 0
        raise CoercionError(value, TypeTag.BOOLEAN, f"unsupported source type {kind.value}")

    def _to_date(self, value: Any) -> date:
        kind = classify_value(value)
        if kind == TypeTag.DATE:
            return value
        if kind == TypeTag.STRING:
            try:
                return parse_date_string(value)
            except ValueError as e:
                raise CoercionError(value, TypeTag.DATE, "unparseable date") from e
        if kind == TypeTag.NUMBER:
            number = float(_to_number(value))
            seconds = number / 1000 if number >= MILLISECONDS_THRESHOLD else number
            try:
                return datetime.fromtimestamp(seconds, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as e:
                raise CoercionError(value, TypeTag.DATE, "timestamp out of range") from e
        raise CoercionError(value, TypeTag.DATE, f"unsupported source type {kind.value}")

    def _to_object_id(self, value: Any) -> ObjectId:
        kind = classify_value(value)
        if kind == TypeTag.OBJECT_ID:
            return value
        if kind == TypeTag.STRING and OBJECT_ID_PATTERN.match(value):
            return ObjectId(value)
        raise CoercionError(value, TypeTag.OBJECT_ID, "not a 24-character hex identifier")

    def _to_array(self, value: Any) -> list:
        kind = classify_value(value)
        if kind == TypeTag.ARRAY:
            return value if isinstance(value, list) else list(value)
        if kind == TypeTag.STRING:
            try:
                parsed = json.loads(value)
            except ValueError:
                return [value]
            return parsed if isinstance(parsed, list) else [value]
        return [value]

    def _to_object(self, value: Any) -> dict:
        kind = classify_value(value)
        if kind == TypeTag.OBJECT and is_object(value):
            return value
        if kind == TypeTag.STRING:
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed
        return {WRAPPED_VALUE_KEY: value}
