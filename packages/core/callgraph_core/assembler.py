"""Assemble a revision call graph from facts reported by an analyzer.

Analyzers report types, methods and call sites by identifier. The assembler
assigns each method of the artifact a dense id, in registration order, and
decides for each call whether it stays inside the artifact (both ends are
defined methods) or crosses into another artifact (the target is unknown).
Calls are resolved when ``build()`` runs, so facts may arrive in any order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from callgraph_core.dependency import Depset
from callgraph_core.exceptions import InvariantViolation
from callgraph_core.graph import Graph
from callgraph_core.models import ClassHierarchy, Type
from callgraph_core.revision import UNKNOWN_TIMESTAMP, RevisionCallGraph
from callgraph_core.uri import Identifier

logger = logging.getLogger(__name__)


@dataclass
class CallSite:
    """A call observed by an analyzer, before id resolution."""

    source: Identifier
    target: Identifier
    call_type: str


@dataclass
class AssemblyStats:
    """Counts collected while building."""

    types: int = 0
    methods: int = 0
    internal_calls: int = 0
    external_call_sites: int = 0
    external_calls: int = 0


class CallGraphAssembler:
    """Collects analyzer facts for one artifact and builds its call graph."""

    def __init__(self) -> None:
        self._types: dict[Identifier, Type] = {}
        self._method_ids: dict[Identifier, int] = {}
        self._calls: list[CallSite] = []
        self.stats = AssemblyStats()

    def add_type(
        self,
        type_uri: Identifier,
        source_file: str,
        super_classes: list[Identifier] | None = None,
        super_interfaces: list[Identifier] | None = None,
    ) -> Type:
        """Register a type defined by the artifact.

        Registering the same type twice keeps its methods and replaces its
        source file and ancestors.
        """
        existing = self._types.get(type_uri)
        type_ = Type(
            source_file_name=source_file,
            methods=existing.methods if existing else {},
            super_classes=list(super_classes or []),
            super_interfaces=list(super_interfaces or []),
        )
        self._types[type_uri] = type_
        return type_

    def add_method(self, type_uri: Identifier, method_uri: Identifier) -> int:
        """Register a method of a registered type and return its id.

        A method that is already registered keeps its id.

        Raises:
            InvariantViolation: If the type is unknown, or the method was
                registered under a different type
        """
        type_ = self._types.get(type_uri)
        if type_ is None:
            raise InvariantViolation(
                "Method declared for an unregistered type",
                {"type": str(type_uri), "method": str(method_uri)},
            )

        method_id = self._method_ids.get(method_uri)
        if method_id is not None:
            if type_.methods.get(method_id) != method_uri:
                raise InvariantViolation(
                    "Method registered under two types",
                    {"type": str(type_uri), "method": str(method_uri)},
                )
            return method_id

        method_id = len(self._method_ids)
        self._method_ids[method_uri] = method_id
        type_.methods[method_id] = method_uri
        return method_id

    def add_call(self, source: Identifier, target: Identifier, call_type: str) -> None:
        """Record one call site. Resolution happens in ``build()``."""
        self._calls.append(CallSite(source, target, call_type))

    def method_id(self, method_uri: Identifier) -> int | None:
        return self._method_ids.get(method_uri)

    def class_hierarchy(self) -> ClassHierarchy:
        return dict(self._types)

    def build_graph(self) -> Graph:
        """Partition recorded calls into internal and external edges.

        Raises:
            InvariantViolation: If a call originates from a method that is not
                defined by the artifact
        """
        graph = Graph()
        self.stats = AssemblyStats()
        for call in self._calls:
            source_id = self._method_ids.get(call.source)
            if source_id is None:
                raise InvariantViolation(
                    "Call from a method the artifact does not define",
                    {"source": str(call.source), "target": str(call.target)},
                )
            target_id = self._method_ids.get(call.target)
            if target_id is None:
                graph.add_external(source_id, call.target, call.call_type)
                self.stats.external_call_sites += 1
            else:
                graph.add_internal(source_id, target_id)

        self.stats.types = len(self._types)
        self.stats.methods = len(self._method_ids)
        self.stats.internal_calls = len(graph.internal_calls)
        self.stats.external_calls = len(graph.external_calls)
        return graph

    def build(
        self,
        *,
        forge: str,
        product: str,
        version: str,
        generator: str,
        timestamp: int = UNKNOWN_TIMESTAMP,
        depset: Depset | None = None,
    ) -> RevisionCallGraph:
        """Build the revision call graph from everything registered so far."""
        graph = self.build_graph()
        logger.debug(
            "Assembled %s:%s with %d types, %d methods, %d internal calls, "
            "%d external calls from %d call sites",
            product,
            version,
            self.stats.types,
            self.stats.methods,
            self.stats.internal_calls,
            self.stats.external_calls,
            self.stats.external_call_sites,
        )
        return (
            RevisionCallGraph.builder()
            .forge(forge)
            .product(product)
            .version(version)
            .generator(generator)
            .timestamp(timestamp)
            .depset(depset or [])
            .class_hierarchy(self.class_hierarchy())
            .graph(graph)
            .build()
        )
