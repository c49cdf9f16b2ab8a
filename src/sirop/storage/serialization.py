"""Blob value codec.

Values are wrapped in a versioned JSON envelope and encoded as UTF-8 so
stores written here stay readable from other languages:

    {"v": 1, "d": <json-compatible value>}

Non-JSON types are tagged:
    datetime             -> {"__datetime__": "2024-01-01T00:00:00"}
    bytes                -> {"__bytes__": "<base64>"}
    dict with other keys -> {"__items__": [[key, value], ...]}

Usage:
    raw = dumps({"id": 1, "title": "Monkey Island"})
    data = loads(raw)
"""

from __future__ import annotations

import base64
import json
from datetime import datetime
from typing import Any

from sirop.errors import SerializationError

FORMAT_VERSION = 1

_TAGS = ("__datetime__", "__bytes__", "__items__")


def dumps(value: Any) -> bytes:
    """Encode a value for the blob store.

    Raises:
        SerializationError: If the value contains an unsupported type.
    """
    envelope = {"v": FORMAT_VERSION, "d": _to_json_compatible(value)}
    return json.dumps(envelope, separators=(",", ":")).encode("utf-8")


def loads(raw: bytes) -> Any:
    """Decode a value read from the blob store.

    Raises:
        SerializationError: If the payload is not a known envelope.
    """
    try:
        envelope = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Malformed blob payload: {e}") from e

    if not isinstance(envelope, dict) or "v" not in envelope:
        raise SerializationError("Blob payload is missing its version envelope")
    if envelope["v"] != FORMAT_VERSION:
        raise SerializationError(
            f"Unsupported blob format v{envelope['v']} (this build reads v{FORMAT_VERSION})"
        )
    return _from_json_compatible(envelope.get("d"))


def _to_json_compatible(value: Any) -> Any:
    """Convert a value to JSON-compatible format."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return {"__datetime__": value.isoformat()}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"__bytes__": base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (list, tuple)):
        return [_to_json_compatible(v) for v in value]
    if isinstance(value, dict):
        if all(isinstance(k, str) for k in value) and not any(t in value for t in _TAGS):
            return {k: _to_json_compatible(v) for k, v in value.items()}
        return {
            "__items__": [[_to_json_compatible(k), _to_json_compatible(v)] for k, v in value.items()]
        }
    if hasattr(value, "doc_key"):
        raise SerializationError(
            f"Cannot serialize {type(value).__name__} record reference directly. "
            f"Declare the property with model=... to store its id."
        )
    raise SerializationError(f"Cannot serialize type: {type(value)}")


def _from_json_compatible(value: Any) -> Any:
    """Convert a value from JSON-compatible format."""
    if isinstance(value, list):
        return [_from_json_compatible(v) for v in value]
    if isinstance(value, dict):
        if "__datetime__" in value:
            return datetime.fromisoformat(value["__datetime__"])
        if "__bytes__" in value:
            return base64.b64decode(value["__bytes__"])
        if "__items__" in value:
            return {_freeze(_from_json_compatible(k)): _from_json_compatible(v) for k, v in value["__items__"]}
        return {k: _from_json_compatible(v) for k, v in value.items()}
    return value


def _freeze(key: Any) -> Any:
    """Lists decoded from tuple keys must be hashable again."""
    if isinstance(key, list):
        return tuple(_freeze(k) for k in key)
    return key
