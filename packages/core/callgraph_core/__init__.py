"""Revision call graphs: the interchange model for per-artifact call graphs.

A revision call graph holds the class hierarchy of one artifact version and
the calls between its methods. Calls that stay inside the artifact use dense
local method ids; calls into other artifacts use the target's globally
stable identifier. The JSON encoding is deterministic, so independent
analyzer runs over the same input can be compared byte for byte after
``sort_internal_calls()``.
"""

from callgraph_core.assembler import CallGraphAssembler, CallSite
from callgraph_core.dependency import Depset
from callgraph_core.exceptions import (
    AnalysisError,
    ArtifactNotFoundError,
    CallGraphError,
    FormatError,
    InvalidConfigError,
    InvariantViolation,
)
from callgraph_core.graph import CallMetadata, ExternalCallKey, Graph, InternalCall
from callgraph_core.models import (
    ClassHierarchy,
    Type,
    class_hierarchy_from_dict,
    class_hierarchy_to_dict,
)
from callgraph_core.revision import (
    UNKNOWN_TIMESTAMP,
    RevisionCallGraph,
    RevisionCallGraphBuilder,
)
from callgraph_core.uri import Identifier, revision_identifier

__all__ = [
    # Model
    "Identifier",
    "revision_identifier",
    "Type",
    "ClassHierarchy",
    "class_hierarchy_from_dict",
    "class_hierarchy_to_dict",
    "Graph",
    "InternalCall",
    "ExternalCallKey",
    "CallMetadata",
    "Depset",
    "RevisionCallGraph",
    "RevisionCallGraphBuilder",
    "UNKNOWN_TIMESTAMP",
    # Assembly
    "CallGraphAssembler",
    "CallSite",
    # Errors
    "CallGraphError",
    "FormatError",
    "InvariantViolation",
    "AnalysisError",
    "ArtifactNotFoundError",
    "InvalidConfigError",
]
