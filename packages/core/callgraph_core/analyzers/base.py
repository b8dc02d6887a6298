"""Contract shared by every call graph producer."""

from __future__ import annotations

from abc import ABC, abstractmethod

from callgraph_core.analyzers.coordinates import MavenCoordinate
from callgraph_core.revision import RevisionCallGraph


class CallGraphProducer(ABC):
    """Produces the call graph of one artifact.

    Producers differ in the engine they run, not in what they return: every
    producer yields a ``RevisionCallGraph`` tagged with its generator name.
    """

    @property
    @abstractmethod
    def generator(self) -> str:
        """Name of the call graph generator."""
        ...

    @abstractmethod
    def produce(self, coordinate: MavenCoordinate, timestamp: int) -> RevisionCallGraph:
        """Generate the call graph of the artifact at ``coordinate``.

        Args:
            coordinate: Artifact to analyze
            timestamp: Release time of the artifact (seconds since epoch),
                or -1 when unknown

        Returns:
            The revision call graph; it may have no edges

        Raises:
            AnalysisError: If the artifact is unavailable or the engine fails
        """
        ...
