"""Call graph producers.

Producers run an external analysis engine over one artifact and return its
revision call graph. The engine in use is chosen by configuration:

- OPAL (default)
- WALA
"""

from callgraph_core.analyzers.base import CallGraphProducer
from callgraph_core.analyzers.coordinates import (
    ArtifactResolver,
    LocalRepositoryResolver,
    MavenCoordinate,
)
from callgraph_core.analyzers.engine import (
    GENERATORS,
    ExternalEngineProducer,
    create_producer,
)
from callgraph_core.analyzers.facts import apply_facts, load_facts

__all__ = [
    "CallGraphProducer",
    "ArtifactResolver",
    "LocalRepositoryResolver",
    "MavenCoordinate",
    "ExternalEngineProducer",
    "GENERATORS",
    "create_producer",
    "apply_facts",
    "load_facts",
]
