"""Types and the class hierarchy of a revision.

Each type is a class or an interface defined by the revision. Method ids are
dense integers that are unique within one revision only; identifiers are the
globally stable names used to link revisions together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from callgraph_core.exceptions import FormatError
from callgraph_core.uri import Identifier
from callgraph_core.wire import parse_method_id, require


@dataclass
class Type:
    """A class or interface with its methods and ancestors."""

    source_file_name: str
    """Name of the file the type was compiled from."""

    methods: dict[int, Identifier] = field(default_factory=dict)
    """Methods of this type keyed by their revision-local id."""

    super_classes: list[Identifier] = field(default_factory=list)
    """Ancestor classes in linearization order, nearest first."""

    super_interfaces: list[Identifier] = field(default_factory=list)
    """Interfaces implemented by this type or its super classes."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "sourceFile": self.source_file_name,
            "methods": {
                str(method_id): str(uri) for method_id, uri in sorted(self.methods.items())
            },
            "superClasses": [str(uri) for uri in self.super_classes],
            "superInterfaces": [str(uri) for uri in self.super_interfaces],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Type:
        """Create from the wire representation."""
        source_file = require(data, "sourceFile", str, "type")
        methods_json = require(data, "methods", dict, "type")
        methods: dict[int, Identifier] = {}
        for key, value in methods_json.items():
            methods[parse_method_id(key)] = Identifier.create(value)

        return cls(
            source_file_name=source_file,
            methods=methods,
            super_classes=[
                Identifier.create(uri) for uri in require(data, "superClasses", list, "type")
            ],
            super_interfaces=[
                Identifier.create(uri) for uri in require(data, "superInterfaces", list, "type")
            ],
        )


ClassHierarchy = dict[Identifier, Type]


def class_hierarchy_from_dict(data: Any) -> ClassHierarchy:
    """Decode the ``cha`` object of a wire document."""
    if not isinstance(data, dict):
        raise FormatError("cha must be an object", {"type": type(data).__name__})
    result: ClassHierarchy = {}
    for key, value in data.items():
        result[Identifier.create(key)] = Type.from_dict(value)
    return result


def class_hierarchy_to_dict(cha: ClassHierarchy) -> dict[str, Any]:
    """Encode a class hierarchy with types ordered by identifier."""
    return {str(uri): cha[uri].to_dict() for uri in sorted(cha)}
