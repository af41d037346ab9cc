"""JSON encoding for decoded BSON values."""

import json
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from bson import ObjectId, json_util
from bson.decimal128 import Decimal128


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_iso(value: date) -> str:
    """Format a temporal value as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    value = to_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def json_default(obj: Any) -> Any:
    """
    `default` hook for json.dumps covering BSON types.

    ObjectIds, dates and decimals become plain JSON values. Other BSON types
    (Timestamp, Regex, Code, MinKey/MaxKey, DBRef) use their Extended JSON
    form, which `loads` turns back into the BSON type.
    """
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return format_iso(obj)
    if isinstance(obj, Decimal128):
        obj = obj.to_decimal()
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, bytes):
        return obj.hex()
    if isinstance(obj, (set, tuple)):
        return list(obj)
    if isinstance(obj, uuid.UUID):
        return str(obj)
    try:
        return json_util.default(obj)
    except (TypeError, ValueError):
        return str(obj)


def loads(text: str) -> Any:
    """Parse artifact JSON, restoring BSON values written in Extended JSON form."""
    return json.loads(text, object_hook=json_util.object_hook)


def dumps(obj: Any, indent: Optional[int] = None) -> str:
    return json.dumps(obj, indent=indent, default=json_default, ensure_ascii=False)


def dumps_pretty(obj: Any) -> str:
    """Pretty-print with 2-space indentation, as written to artifact files."""
    return dumps(obj, indent=2)
