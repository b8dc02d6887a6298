"""Opaque, globally unique identifiers for types and methods.

The textual grammar of the scheme belongs to the producing analyzer. This
module only guarantees that an identifier is a non-empty, whitespace-free
string and that identifiers order by their string form.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from callgraph_core.exceptions import FormatError


@dataclass(frozen=True, order=True)
class Identifier:
    """A string-ordered identifier such as ``/java.lang/Object.hashCode()``."""

    value: str

    @classmethod
    def create(cls, value: Any) -> Identifier:
        """Parse an identifier from its wire representation."""
        if isinstance(value, Identifier):
            return value
        if not isinstance(value, str) or not value:
            raise FormatError("Identifier must be a non-empty string", {"value": repr(value)})
        if any(ch.isspace() for ch in value):
            raise FormatError("Identifier must not contain whitespace", {"value": value})
        return cls(value)

    def __str__(self) -> str:
        return self.value


def revision_identifier(forge: str, product: str, version: str) -> Identifier:
    """Build the identifier a revision is published under."""
    return Identifier(f"fasten://{forge}!{product}${version}")
