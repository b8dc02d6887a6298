"""Maven coordinates and local artifact lookup.

Downloading artifacts is left to other services; this module only locates an
artifact that has already been resolved into a local repository.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from callgraph_core.exceptions import ArtifactNotFoundError, FormatError


@dataclass(frozen=True)
class MavenCoordinate:
    """Coordinate of one Maven artifact version."""

    group_id: str
    artifact_id: str
    version: str

    @property
    def product(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def coordinate(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"

    def __str__(self) -> str:
        return self.coordinate

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> MavenCoordinate:
        """Read a coordinate from a consumed record.

        Example record::

            {"groupId": "com.g2forge.alexandria", "artifactId": "alexandria",
             "version": "0.0.9", "date": "1574072773"}
        """
        try:
            return cls(
                group_id=str(record["groupId"]),
                artifact_id=str(record["artifactId"]),
                version=str(record["version"]),
            )
        except (KeyError, TypeError) as e:
            raise FormatError(
                "Could not parse input coordinates", {"record": repr(record), "missing": str(e)}
            ) from e


class ArtifactResolver(ABC):
    """Locates the binary of an artifact on the local file system."""

    @abstractmethod
    def resolve(self, coordinate: MavenCoordinate) -> Path:
        """Return the path of the artifact's JAR.

        Raises:
            ArtifactNotFoundError: If the artifact is not available
        """
        ...


class LocalRepositoryResolver(ArtifactResolver):
    """Resolver over a local Maven repository layout."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    def artifact_path(self, coordinate: MavenCoordinate) -> Path:
        return (
            self._root.joinpath(*coordinate.group_id.split("."))
            / coordinate.artifact_id
            / coordinate.version
            / f"{coordinate.artifact_id}-{coordinate.version}.jar"
        )

    def resolve(self, coordinate: MavenCoordinate) -> Path:
        path = self.artifact_path(coordinate)
        if not path.is_file():
            raise ArtifactNotFoundError(
                f"Could not find JAR for Maven coordinate: {coordinate}", {"path": str(path)}
            )
        return path
