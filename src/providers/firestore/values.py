"""Firestore REST value codec.

Firestore's REST API wraps every field value in a one-key object naming its
type (``{"stringValue": "x"}``, ``{"integerValue": "42"}``).  This module
converts between those objects and plain Python values.

Strings are always written as ``stringValue``; wrap a string in
:class:`Timestamp` to write it as ``timestampValue`` instead.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


class Timestamp(str):
    """An RFC 3339 string that must be stored as a Firestore timestamp."""


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore ``Value`` object.

    Raises
    ------
    TypeError
        For types Firestore has no REST representation for.
    """
    if value is None:
        return {"nullValue": None}
    # bool before int: True is an int in Python.
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, Timestamp):
        return {"timestampValue": str(value)}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def decode_value(value: dict[str, Any]) -> Any:
    """Decode a Firestore ``Value`` object into a Python value.

    Timestamps come back as their RFC 3339 string.  Unknown value kinds
    (references, geo points, bytes) are returned as-is.
    """
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return str(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    return value


def encode_fields(fields: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Encode every entry of a field dict."""
    return {key: encode_value(val) for key, val in fields.items()}


def decode_fields(fields: dict[str, dict[str, Any]]) -> dict[str, Any]:
    """Decode every entry of a Firestore ``fields`` object."""
    return {key: decode_value(val) for key, val in fields.items()}
