"""
Deterministic JSON serialization for manifest snapshots.

Identical manifests must produce identical bytes so that stored snapshots
can be compared and fingerprinted between builds.
"""

from __future__ import annotations

from enum import Enum
from pathlib import PurePath
from typing import Any

import orjson


def _default_serializer(obj: Any) -> Any:
    """
    Serializer for types orjson does not handle natively.

    Raises:
        TypeError: If object cannot be serialized.
    """
    if isinstance(obj, PurePath):
        return obj.as_posix()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if isinstance(obj, bytes):
        return obj.hex()
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonical_json_dumps(obj: Any, *, indent: bool = False) -> str:
    """
    Serialize object to canonical JSON string.

    Keys are sorted and non-native values go through a stable fallback.

    Examples:
        >>> canonical_json_dumps({"b": 2, "a": 1})
        '{"a":1,"b":2}'
    """
    options = orjson.OPT_SORT_KEYS
    if indent:
        options |= orjson.OPT_INDENT_2

    return orjson.dumps(obj, default=_default_serializer, option=options).decode("utf-8")


def canonical_json_loads(json_str: str | bytes) -> Any:
    """Parse a JSON document."""
    return orjson.loads(json_str)


def canonical_json_bytes(obj: Any) -> bytes:
    """
    Serialize object to canonical JSON bytes.

    Used for fingerprinting.
    """
    return orjson.dumps(obj, default=_default_serializer, option=orjson.OPT_SORT_KEYS)
