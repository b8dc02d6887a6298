"""Dependency set carried through the codec without interpretation."""

from __future__ import annotations

import copy
from typing import Any

from callgraph_core.exceptions import FormatError

Depset = list[list[dict[str, Any]]]


def depset_from_json(value: Any) -> Depset:
    """Validate the shape of a wire depset and copy it."""
    if not isinstance(value, list):
        raise FormatError("depset must be an array", {"type": type(value).__name__})
    result: Depset = []
    for index, group in enumerate(value):
        if not isinstance(group, list):
            raise FormatError("depset entries must be arrays", {"index": index})
        for dependency in group:
            if not isinstance(dependency, dict):
                raise FormatError("dependencies must be objects", {"index": index})
        result.append(copy.deepcopy(group))
    return result


def depset_to_json(depset: Depset) -> list[list[dict[str, Any]]]:
    return copy.deepcopy(depset)
