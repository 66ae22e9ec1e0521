"""
Document payload codec.

WHAT: Convert document data to and from JSON-safe structures
WHY: Documents carry datetimes (archivedAt, typing timestamps) that JSON cannot hold
HOW: Datetimes become tagged mappings; user mappings that happen to use the
     tag key are wrapped so they decode back unchanged
"""

from datetime import datetime, timezone
from typing import Any, Dict

_TYPE_KEY = "__type__"
_DATETIME_TAG = "datetime"
_MAP_TAG = "map"


def encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # Naive datetimes are taken as UTC
            value = value.replace(tzinfo=timezone.utc)
        return {_TYPE_KEY: _DATETIME_TAG, "value": value.isoformat()}
    if isinstance(value, dict):
        encoded = {str(k): encode_value(v) for k, v in value.items()}
        if _TYPE_KEY in encoded:
            return {_TYPE_KEY: _MAP_TAG, "value": encoded}
        return encoded
    if isinstance(value, (list, tuple)):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, dict):
        tag = value.get(_TYPE_KEY)
        if tag == _DATETIME_TAG:
            return datetime.fromisoformat(value["value"])
        if tag == _MAP_TAG:
            return {k: decode_value(v) for k, v in value["value"].items()}
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def encode_document(data: Dict[str, Any]) -> Dict[str, Any]:
    """Encode a document mapping for the JSON column; the top level is never wrapped."""
    return {str(k): encode_value(v) for k, v in data.items()}


def decode_document(raw: Dict[str, Any] | None) -> Dict[str, Any]:
    """Decode a JSON column value back into a fresh document mapping."""
    return {k: decode_value(v) for k, v in (raw or {}).items()}
