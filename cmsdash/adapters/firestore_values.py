"""Encode/decode Firestore REST typed values.

The REST API wraps every field value in a one-key object naming its type,
e.g. ``{"stringValue": "Vacation"}`` or ``{"integerValue": "42"}`` (64-bit
integers travel as strings). Documents carry their id as the last segment of
``name``.
"""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

from cmsdash.domain.entities import Document


def encode_value(value: Any) -> Dict[str, Any]:
    """Wrap a Python value in its Firestore typed-value object."""
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, datetime):
        return {"timestampValue": format_timestamp(value)}
    if isinstance(value, bytes):
        return {"bytesValue": base64.b64encode(value).decode("ascii")}
    if isinstance(value, Mapping):
        return {"mapValue": {"fields": encode_fields(value)}}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(item) for item in value]}}
    raise TypeError(f"Unsupported field value type: {type(value).__name__}")


def encode_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): encode_value(value) for key, value in fields.items()}


def decode_value(typed: Mapping[str, Any]) -> Any:
    """Unwrap one typed-value object into a Python value."""
    if not isinstance(typed, Mapping) or not typed:
        return None
    if "nullValue" in typed:
        return None
    if "booleanValue" in typed:
        return bool(typed["booleanValue"])
    if "integerValue" in typed:
        return int(typed["integerValue"])
    if "doubleValue" in typed:
        return float(typed["doubleValue"])
    if "stringValue" in typed:
        return str(typed["stringValue"])
    if "timestampValue" in typed:
        return parse_timestamp(str(typed["timestampValue"]))
    if "bytesValue" in typed:
        return base64.b64decode(typed["bytesValue"])
    if "referenceValue" in typed:
        return str(typed["referenceValue"])
    if "geoPointValue" in typed:
        point = typed["geoPointValue"] or {}
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if "mapValue" in typed:
        return decode_fields((typed["mapValue"] or {}).get("fields") or {})
    if "arrayValue" in typed:
        values = (typed["arrayValue"] or {}).get("values") or []
        return [decode_value(item) for item in values]
    raise ValueError(f"Unknown Firestore value type: {sorted(typed)}")


def decode_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key): decode_value(value) for key, value in fields.items()}


def decode_document(payload: Mapping[str, Any]) -> Document:
    """Convert a REST document resource into a domain ``Document``."""
    name = str(payload.get("name") or "")
    doc_id = name.rstrip("/").rsplit("/", 1)[-1]
    if not doc_id:
        raise ValueError("Document resource is missing its name.")
    return Document(id=doc_id, fields=decode_fields(payload.get("fields") or {}))


def format_timestamp(value: datetime) -> str:
    """RFC 3339 UTC text with ``Z`` suffix; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def parse_timestamp(text: str) -> datetime:
    """Parse RFC 3339 text, trimming nanoseconds to microseconds."""
    raw = text.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    if "." in raw:
        head, _, rest = raw.partition(".")
        digits = ""
        for ch in rest:
            if not ch.isdigit():
                break
            digits += ch
        raw = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    return datetime.fromisoformat(raw)


__all__ = [
    "decode_document",
    "decode_fields",
    "decode_value",
    "encode_fields",
    "encode_value",
    "format_timestamp",
    "parse_timestamp",
]
