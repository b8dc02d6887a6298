"""Producers backed by external call graph engines.

OPAL and WALA run as separate processes. Each is started with the artifact
path and an output path, and writes a facts file that is assembled into a
revision call graph here. The two backends differ only in configuration.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import tempfile
from pathlib import Path

from callgraph_core.analyzers.base import CallGraphProducer
from callgraph_core.analyzers.coordinates import (
    ArtifactResolver,
    LocalRepositoryResolver,
    MavenCoordinate,
)
from callgraph_core.analyzers.facts import load_facts
from callgraph_core.analyzers.runner import (
    CommandFailedError,
    CommandNotFoundError,
    CommandTimeoutError,
    run_cmd,
)
from callgraph_core.assembler import CallGraphAssembler
from callgraph_core.exceptions import AnalysisError, InvalidConfigError
from callgraph_core.revision import RevisionCallGraph
from callgraph_core.settings import Settings

logger = logging.getLogger(__name__)

FACTS_FILE_NAME = "facts.jsonl"


class ExternalEngineProducer(CallGraphProducer):
    """Runs an engine command and assembles the facts it writes.

    The command template may use the placeholders ``{artifact}`` and
    ``{output}``.
    """

    def __init__(
        self,
        generator: str,
        command: str,
        resolver: ArtifactResolver,
        forge: str = "mvn",
        timeout_s: int = 1800,
    ) -> None:
        if not command.strip():
            raise InvalidConfigError(f"{generator.lower()}_command", command, "empty command")
        self._generator = generator
        self._command = command
        self._resolver = resolver
        self._forge = forge
        self._timeout_s = timeout_s

    @property
    def generator(self) -> str:
        return self._generator

    def is_available(self) -> bool:
        """Check if the engine executable is on the PATH."""
        return shutil.which(shlex.split(self._command)[0]) is not None

    def build_command(self, artifact: Path, output: Path) -> list[str]:
        return [
            part.format(artifact=artifact, output=output) for part in shlex.split(self._command)
        ]

    def produce(self, coordinate: MavenCoordinate, timestamp: int) -> RevisionCallGraph:
        artifact = self._resolver.resolve(coordinate)

        with tempfile.TemporaryDirectory(prefix="callgraph_") as work_dir:
            output = Path(work_dir) / FACTS_FILE_NAME
            cmd = self.build_command(artifact, output)
            try:
                result = run_cmd(cmd, cwd=Path(work_dir), timeout_s=self._timeout_s)
                result.check(cmd)
            except CommandNotFoundError as e:
                raise AnalysisError(str(e), {"generator": self._generator}) from e
            except CommandTimeoutError as e:
                raise AnalysisError(
                    str(e), {"generator": self._generator, "coordinate": str(coordinate)}
                ) from e
            except CommandFailedError as e:
                raise AnalysisError(
                    str(e),
                    {
                        "generator": self._generator,
                        "coordinate": str(coordinate),
                        "stderr": e.stderr,
                    },
                ) from e

            if not output.exists():
                raise AnalysisError(
                    "Engine finished without writing facts",
                    {"generator": self._generator, "coordinate": str(coordinate)},
                )

            assembler = CallGraphAssembler()
            count = load_facts(output, assembler)
            logger.debug("Loaded %d facts for %s in %.1fs", count, coordinate, result.elapsed_s)

        return assembler.build(
            forge=self._forge,
            product=coordinate.product,
            version=coordinate.version,
            generator=self._generator,
            timestamp=timestamp,
        )


GENERATORS = ("OPAL", "WALA")


def create_producer(
    settings: Settings, resolver: ArtifactResolver | None = None
) -> CallGraphProducer:
    """Create the producer selected by ``settings.generator``.

    Raises:
        InvalidConfigError: If the generator name is unknown
    """
    generator = settings.generator.upper()
    commands = {"OPAL": settings.opal_command, "WALA": settings.wala_command}
    if generator not in commands:
        raise InvalidConfigError(
            "generator", settings.generator, f"expected one of {', '.join(GENERATORS)}"
        )

    return ExternalEngineProducer(
        generator=generator,
        command=commands[generator],
        resolver=resolver or LocalRepositoryResolver(settings.local_repository),
        forge=settings.forge,
        timeout_s=settings.engine_timeout_seconds,
    )
