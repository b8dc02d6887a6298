"""Revision call graph: the aggregate published for one analyzed artifact.

A revision call graph owns the class hierarchy of the revision, the graph of
internal and external calls, and the metadata naming the revision and the
analyzer that produced it. It is built once per analysis run, either through
``RevisionCallGraph.builder()`` or by decoding a wire document, and is not
modified afterwards except by ``sort_internal_calls()``.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from callgraph_core.dependency import Depset, depset_from_json, depset_to_json
from callgraph_core.exceptions import FormatError, InvariantViolation
from callgraph_core.graph import Graph
from callgraph_core.models import (
    ClassHierarchy,
    class_hierarchy_from_dict,
    class_hierarchy_to_dict,
)
from callgraph_core.uri import Identifier, revision_identifier
from callgraph_core.wire import require

logger = logging.getLogger(__name__)

UNKNOWN_TIMESTAMP = -1


@dataclass
class RevisionCallGraph:
    """Call graph of one revision of one product."""

    forge: str
    product: str
    version: str
    generator: str
    timestamp: int = UNKNOWN_TIMESTAMP
    depset: Depset = field(default_factory=list)
    class_hierarchy: ClassHierarchy = field(default_factory=dict)
    graph: Graph = field(default_factory=Graph)

    def __post_init__(self) -> None:
        if self.timestamp < 0 and self.timestamp != UNKNOWN_TIMESTAMP:
            logger.warning("Negative timestamp %d: assuming %d", self.timestamp, UNKNOWN_TIMESTAMP)
            self.timestamp = UNKNOWN_TIMESTAMP
        self.validate()

    @staticmethod
    def builder() -> RevisionCallGraphBuilder:
        return RevisionCallGraphBuilder()

    @property
    def uri(self) -> Identifier:
        """Identifier the revision is published under."""
        return revision_identifier(self.forge, self.product, self.version)

    @property
    def has_timestamp(self) -> bool:
        return self.timestamp >= 0

    def validate(self) -> None:
        """Check that every method id used by an edge is defined exactly once.

        Raises:
            InvariantViolation: If two types share a method id, or an edge
                references an id that no type defines
        """
        owners: dict[int, Identifier] = {}
        for type_uri, type_ in self.class_hierarchy.items():
            for method_id in type_.methods:
                if method_id in owners:
                    raise InvariantViolation(
                        f"Method id {method_id} is defined by more than one type",
                        {"first": str(owners[method_id]), "second": str(type_uri)},
                    )
                owners[method_id] = type_uri

        dangling = self.graph.referenced_method_ids() - owners.keys()
        if dangling:
            raise InvariantViolation(
                "Call graph references methods missing from the class hierarchy",
                {"revision": str(self.uri), "ids": ", ".join(map(str, sorted(dangling)))},
            )

    def map_of_all_methods(self) -> dict[int, Identifier]:
        """Flatten the class hierarchy into one id -> identifier mapping."""
        result: dict[int, Identifier] = {}
        for type_ in self.class_hierarchy.values():
            result.update(type_.methods)
        return result

    def sort_internal_calls(self) -> None:
        """Put internal calls into canonical order. Idempotent."""
        self.graph.sort_internal_calls(self.map_of_all_methods())

    def is_call_graph_empty(self) -> bool:
        """True when the revision has no internal and no external calls.

        An empty call graph is a valid result for a trivial artifact.
        """
        return self.graph.is_empty()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire document.

        The timestamp is omitted when unknown, so that an unknown timestamp
        and the epoch stay distinguishable.
        """
        result: dict[str, Any] = {
            "forge": self.forge,
            "product": self.product,
            "version": self.version,
            "generator": self.generator,
        }
        if self.has_timestamp:
            result["timestamp"] = self.timestamp
        result["cha"] = class_hierarchy_to_dict(self.class_hierarchy)
        result["depset"] = depset_to_json(self.depset)
        result["graph"] = self.graph.to_dict()
        return result

    def to_json(self) -> str:
        """Serialize to compact JSON text."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Any) -> RevisionCallGraph:
        """Decode a wire document.

        Raises:
            FormatError: If a required key is missing or has the wrong type
            InvariantViolation: If an edge references an undefined method id
        """
        return cls(
            forge=require(data, "forge", str, "revision call graph"),
            product=require(data, "product", str, "revision call graph"),
            version=require(data, "version", str, "revision call graph"),
            generator=require(data, "generator", str, "revision call graph"),
            timestamp=_timestamp_from_json(data),
            depset=depset_from_json(require(data, "depset", list, "revision call graph")),
            class_hierarchy=class_hierarchy_from_dict(
                require(data, "cha", dict, "revision call graph")
            ),
            graph=Graph.from_dict(require(data, "graph", dict, "revision call graph")),
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> RevisionCallGraph:
        """Decode a wire document from JSON text."""
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError("Revision call graph is not valid JSON", {"error": str(e)}) from e
        return cls.from_dict(data)


def _timestamp_from_json(data: dict[str, Any]) -> int:
    if "timestamp" not in data:
        logger.warning("No timestamp provided: assuming %d", UNKNOWN_TIMESTAMP)
        return UNKNOWN_TIMESTAMP
    # Negative values are normalized in __post_init__
    return require(data, "timestamp", int, "revision call graph")


class RevisionCallGraphBuilder:
    """Fluent builder used by analyzer integrations.

    ``build()`` copies the depset, class hierarchy and graph it was given, so
    later changes to those objects do not reach the built call graph. A
    negative timestamp is stored as unknown.
    """

    def __init__(self) -> None:
        self._forge: str | None = None
        self._product: str | None = None
        self._version: str | None = None
        self._generator: str | None = None
        self._timestamp = UNKNOWN_TIMESTAMP
        self._depset: Depset = []
        self._class_hierarchy: ClassHierarchy = {}
        self._graph = Graph()

    def forge(self, forge: str) -> RevisionCallGraphBuilder:
        self._forge = forge
        return self

    def product(self, product: str) -> RevisionCallGraphBuilder:
        self._product = product
        return self

    def version(self, version: str) -> RevisionCallGraphBuilder:
        self._version = version
        return self

    def generator(self, generator: str) -> RevisionCallGraphBuilder:
        self._generator = generator
        return self

    def timestamp(self, timestamp: int) -> RevisionCallGraphBuilder:
        self._timestamp = timestamp
        return self

    def depset(self, depset: Depset) -> RevisionCallGraphBuilder:
        self._depset = depset
        return self

    def class_hierarchy(self, cha: ClassHierarchy) -> RevisionCallGraphBuilder:
        self._class_hierarchy = cha
        return self

    def graph(self, graph: Graph) -> RevisionCallGraphBuilder:
        self._graph = graph
        return self

    def build(self) -> RevisionCallGraph:
        missing = [
            name
            for name, value in (
                ("forge", self._forge),
                ("product", self._product),
                ("version", self._version),
                ("generator", self._generator),
            )
            if not value
        ]
        if missing:
            raise FormatError("Missing revision call graph fields", {"fields": ", ".join(missing)})

        return RevisionCallGraph(
            forge=self._forge,
            product=self._product,
            version=self._version,
            generator=self._generator,
            timestamp=self._timestamp,
            depset=copy.deepcopy(self._depset),
            class_hierarchy=copy.deepcopy(self._class_hierarchy),
            graph=copy.deepcopy(self._graph),
        )
