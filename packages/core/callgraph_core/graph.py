"""Internal and external call edges of a revision.

Internal calls connect two methods defined in the same revision and are
addressed by local method ids. Every call site is kept, so the same pair may
appear more than once.

External calls leave the revision. Their target has no local id and is
addressed by its identifier instead. Repeated call sites of the same
``(source, target)`` pair collapse into one entry whose metadata counts the
occurrences per call type (for example ``{"invokevirtual": "3"}``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from callgraph_core.exceptions import FormatError
from callgraph_core.uri import Identifier
from callgraph_core.wire import parse_method_id, require

logger = logging.getLogger(__name__)


class InternalCall(NamedTuple):
    """A call between two methods of the same revision."""

    source: int
    target: int


class ExternalCallKey(NamedTuple):
    """Key of a call from a local method to a method of another artifact."""

    source: int
    target: Identifier


CallMetadata = dict[str, str]


@dataclass
class Graph:
    """Edge sets of a revision call graph."""

    internal_calls: list[InternalCall] = field(default_factory=list)
    external_calls: dict[ExternalCallKey, CallMetadata] = field(default_factory=dict)

    def add_internal(self, source: int, target: int) -> None:
        """Append an internal call. Duplicates are kept, one per call site."""
        self.internal_calls.append(InternalCall(source, target))

    def add_external(self, source: int, target: Identifier, call_type: str) -> None:
        """Record one external call site, merging it into the existing entry.

        Args:
            source: Local id of the calling method
            target: Identifier of the called method in another artifact
            call_type: Tag of the call instruction (e.g. ``invokestatic``)
        """
        key = ExternalCallKey(source, target)
        metadata = self.external_calls.setdefault(key, {})
        metadata[call_type] = str(int(metadata.get(call_type, "0")) + 1)

    def sort_internal_calls(self, methods: Mapping[int, Identifier] | None = None) -> None:
        """Reorder internal calls canonically.

        Calls are ordered by the identifiers their ids resolve to in
        ``methods``, then by the raw ids. Ids missing from ``methods`` sort
        after every resolved one. Only the order changes; sorting twice gives
        the same result as sorting once.
        """
        resolved = methods or {}

        def _resolve(method_id: int) -> tuple[bool, str]:
            uri = resolved.get(method_id)
            return (uri is None, "" if uri is None else str(uri))

        self.internal_calls.sort(
            key=lambda call: (
                _resolve(call.source),
                _resolve(call.target),
                call.source,
                call.target,
            )
        )

    def referenced_method_ids(self) -> set[int]:
        """Return every local id used by an internal or external call."""
        ids: set[int] = set()
        for call in self.internal_calls:
            ids.add(call.source)
            ids.add(call.target)
        for key in self.external_calls:
            ids.add(key.source)
        return ids

    def is_empty(self) -> bool:
        return not self.internal_calls and not self.external_calls

    def size(self) -> int:
        """Number of internal calls plus number of distinct external keys."""
        return len(self.internal_calls) + len(self.external_calls)

    def __len__(self) -> int:
        return self.size()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation.

        Internal calls keep their current order; external calls are emitted
        ordered by source id and target identifier.
        """
        return {
            "internalCalls": [[call.source, call.target] for call in self.internal_calls],
            "externalCalls": [
                [str(key.source), str(key.target), dict(sorted(self.external_calls[key].items()))]
                for key in sorted(self.external_calls, key=lambda k: (k.source, k.target))
            ],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Graph:
        """Create from the wire representation."""
        internal_json = require(data, "internalCalls", list, "graph")
        external_json = require(data, "externalCalls", list, "graph")

        graph = cls()
        for entry in internal_json:
            graph.internal_calls.append(_internal_call_from_json(entry))
        for entry in external_json:
            key, metadata = _external_call_from_json(entry)
            if key in graph.external_calls:
                raise FormatError(
                    "Duplicate external call",
                    {"source": str(key.source), "target": str(key.target)},
                )
            graph.external_calls[key] = metadata

        logger.debug(
            "Decoded graph with %d internal and %d external calls",
            len(graph.internal_calls),
            len(graph.external_calls),
        )
        return graph

    @classmethod
    def from_edges(
        cls,
        internal_calls: Iterable[tuple[int, int]] = (),
        external_calls: Iterable[tuple[int, Identifier, str]] = (),
    ) -> Graph:
        """Build a graph from raw edges, merging repeated external call sites."""
        graph = cls()
        for source, target in internal_calls:
            graph.add_internal(source, target)
        for source, target, call_type in external_calls:
            graph.add_external(source, target, call_type)
        return graph


def _internal_call_from_json(entry: Any) -> InternalCall:
    if not isinstance(entry, list) or len(entry) != 2:
        raise FormatError("Internal call must be a [source, target] pair", {"value": repr(entry)})
    source, target = entry
    for value in (source, target):
        if isinstance(value, bool) or not isinstance(value, int):
            raise FormatError("Internal call ids must be integers", {"value": repr(entry)})
    return InternalCall(parse_method_id(source), parse_method_id(target))


def _external_call_from_json(entry: Any) -> tuple[ExternalCallKey, CallMetadata]:
    if not isinstance(entry, list) or len(entry) != 3:
        raise FormatError(
            "External call must be a [source, target, metadata] triple", {"value": repr(entry)}
        )
    source, target, metadata_json = entry
    if not isinstance(metadata_json, dict):
        raise FormatError("External call metadata must be an object", {"value": repr(entry)})

    metadata: CallMetadata = {}
    for tag, count in metadata_json.items():
        if not isinstance(count, str) or not (count.isascii() and count.isdigit()):
            raise FormatError(
                "External call counts must be decimal strings", {"tag": tag, "count": repr(count)}
            )
        metadata[tag] = count

    return ExternalCallKey(parse_method_id(source), Identifier.create(target)), metadata
