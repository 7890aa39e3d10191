"""Encode/decode Python values to/from Firestore REST API 'fields' format."""

import base64
from datetime import datetime
from enum import Enum
from typing import Any


def _encode_value(v: Any) -> dict:
    if v is None:
        return {"nullValue": None}
    # str Enums (TenantStatus, Permission, ...) are stored by value.
    if isinstance(v, Enum):
        return _encode_value(v.value)
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple, set, frozenset)):
        return {"arrayValue": {"values": [_encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: _encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_fields(data: dict[str, Any]) -> dict[str, dict]:
    """Convert a Python dict to a Firestore REST fields map."""
    return {k: _encode_value(v) for k, v in data.items()}


def encode_document(data: dict[str, Any], name: str | None = None) -> dict:
    """Convert a Python dict to a Firestore REST Document (optionally named, for commit writes)."""
    doc: dict[str, Any] = {"fields": encode_fields(data)}
    if name is not None:
        doc["name"] = name
    return doc


def _decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return obj["doubleValue"]
    if "timestampValue" in obj:
        return datetime.fromisoformat(obj["timestampValue"].replace("Z", "+00:00"))
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [_decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: _decode_value(x) for k, x in fields.items()}
    return None


def decode_document(fields: dict | None) -> dict:
    """Convert a Firestore REST fields map to a Python dict."""
    if not fields:
        return {}
    return {k: _decode_value(v) for k, v in fields.items()}
