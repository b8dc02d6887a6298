"""Helpers for strict decoding of wire documents."""

from __future__ import annotations

from typing import Any

from callgraph_core.exceptions import FormatError

_TYPE_NAMES: dict[type, str] = {
    str: "string",
    int: "integer",
    list: "array",
    dict: "object",
}


def require(data: Any, key: str, expected: type, context: str) -> Any:
    """Return ``data[key]`` if present and of the expected JSON type."""
    if not isinstance(data, dict):
        raise FormatError(f"{context} must be an object", {"type": type(data).__name__})
    if key not in data:
        raise FormatError(f"Missing required key '{key}' in {context}")
    value = data[key]
    if not _is_instance(value, expected):
        raise FormatError(
            f"Key '{key}' in {context} must be {_TYPE_NAMES.get(expected, expected.__name__)}",
            {"actual": type(value).__name__},
        )
    return value


def parse_method_id(value: Any) -> int:
    """Parse a local method id from an integer or its decimal string form."""
    if isinstance(value, bool):
        raise FormatError("Method id must be an integer", {"value": repr(value)})
    if isinstance(value, int):
        method_id = value
    elif isinstance(value, str) and value.isascii() and value.isdigit():
        method_id = int(value)
    else:
        raise FormatError("Method id must be an integer", {"value": repr(value)})
    if method_id < 0:
        raise FormatError("Method id must not be negative", {"value": str(method_id)})
    return method_id


def _is_instance(value: Any, expected: type) -> bool:
    # JSON booleans decode to bool, which is an int subclass
    if expected is int and isinstance(value, bool):
        return False
    return isinstance(value, expected)
