"""Tests for call graph producers and their external engines."""

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from callgraph_core import (
    AnalysisError,
    ArtifactNotFoundError,
    ExternalCallKey,
    FormatError,
    Identifier,
    InvalidConfigError,
)
from callgraph_core.analyzers import (
    ExternalEngineProducer,
    LocalRepositoryResolver,
    MavenCoordinate,
    apply_facts,
    create_producer,
)
from callgraph_core.analyzers.runner import (
    CmdResult,
    CommandFailedError,
    CommandNotFoundError,
    run_cmd,
)
from callgraph_core.assembler import CallGraphAssembler
from callgraph_core.settings import Settings

COORDINATE = MavenCoordinate("com.g2forge.alexandria", "alexandria", "0.0.9")

FACTS = [
    {"kind": "call", "source": "/p/A.foo()", "target": "/p/A.bar()", "callType": "invokespecial"},
    {
        "kind": "call",
        "source": "/p/A.bar()",
        "target": "/java.lang/Object.hashCode()",
        "callType": "invokevirtual",
    },
    {"kind": "method", "type": "/p/A", "uri": "/p/A.foo()"},
    {"kind": "method", "type": "/p/A", "uri": "/p/A.bar()"},
    {
        "kind": "type",
        "uri": "/p/A",
        "sourceFile": "A.java",
        "superClasses": ["/java.lang/Object"],
        "superInterfaces": [],
    },
    {"kind": "metadata", "engine": "test"},
]


def facts_text(facts: list[dict] = FACTS) -> str:
    return "\n".join(json.dumps(fact) for fact in facts) + "\n"


@pytest.fixture
def repository(tmp_path: Path) -> Path:
    jar = tmp_path / "repo/com/g2forge/alexandria/alexandria/0.0.9/alexandria-0.0.9.jar"
    jar.parent.mkdir(parents=True)
    jar.write_bytes(b"PK")
    return tmp_path / "repo"


@pytest.fixture
def producer(repository: Path) -> ExternalEngineProducer:
    return ExternalEngineProducer(
        generator="OPAL",
        command="opal-callgraph --input {artifact} --output {output}",
        resolver=LocalRepositoryResolver(repository),
    )


def fake_engine(facts: str | None = None, exit_code: int = 0, timed_out: bool = False):
    """Build a run_cmd replacement that writes ``facts`` to the output path."""

    def _run(cmd, cwd, timeout_s=300, **kwargs):
        if facts is not None:
            Path(cmd[-1]).write_text(facts, encoding="utf-8")
        return CmdResult(
            exit_code=exit_code,
            stdout_tail="",
            stderr_tail="boom" if exit_code else "",
            elapsed_s=0.5,
            timed_out=timed_out,
        )

    return _run


class TestFacts:
    """Tests for reading engine facts."""

    def test_apply_facts_in_any_order(self) -> None:
        assembler = CallGraphAssembler()
        count = apply_facts(facts_text().splitlines(), assembler)
        cg = assembler.build(forge="mvn", product="p:a", version="1", generator="OPAL")

        assert count == 5
        assert cg.graph.internal_calls == [(0, 1)]
        assert cg.graph.external_calls == {
            ExternalCallKey(1, Identifier("/java.lang/Object.hashCode()")): {"invokevirtual": "1"}
        }

    def test_blank_lines_are_skipped(self) -> None:
        assembler = CallGraphAssembler()
        assert apply_facts(["", "   ", json.dumps(FACTS[4])], assembler) == 1

    def test_invalid_json(self) -> None:
        with pytest.raises(FormatError) as excinfo:
            apply_facts([json.dumps(FACTS[4]), "{oops"], CallGraphAssembler())
        assert excinfo.value.details["line"] == 2

    def test_non_object_line(self) -> None:
        with pytest.raises(FormatError):
            apply_facts(["[1, 2]"], CallGraphAssembler())

    def test_missing_key(self) -> None:
        with pytest.raises(FormatError, match="callType"):
            apply_facts(
                [
                    json.dumps(FACTS[4]),
                    json.dumps(FACTS[2]),
                    json.dumps({"kind": "call", "source": "/p/A.foo()", "target": "/x"}),
                ],
                CallGraphAssembler(),
            )


class TestCoordinates:
    """Tests for Maven coordinates and local lookup."""

    def test_from_record(self) -> None:
        coordinate = MavenCoordinate.from_record(
            {
                "groupId": "com.g2forge.alexandria",
                "artifactId": "alexandria",
                "version": "0.0.9",
                "date": "1574072773",
            }
        )
        assert coordinate == COORDINATE
        assert coordinate.product == "com.g2forge.alexandria:alexandria"
        assert coordinate.coordinate == "com.g2forge.alexandria:alexandria:0.0.9"

    def test_from_record_missing_key(self) -> None:
        with pytest.raises(FormatError, match="Could not parse input coordinates"):
            MavenCoordinate.from_record({"groupId": "g", "version": "1"})

    def test_resolver_finds_jar(self, repository: Path) -> None:
        path = LocalRepositoryResolver(repository).resolve(COORDINATE)
        assert path.name == "alexandria-0.0.9.jar"

    def test_resolver_missing_jar(self, repository: Path) -> None:
        with pytest.raises(ArtifactNotFoundError) as excinfo:
            LocalRepositoryResolver(repository).resolve(MavenCoordinate("g", "a", "1"))
        assert isinstance(excinfo.value, AnalysisError)
        assert excinfo.value.details["path"].endswith("g/a/1/a-1.jar")


class TestExternalEngineProducer:
    """Tests for producers backed by an engine process."""

    def test_build_command(self, producer: ExternalEngineProducer) -> None:
        cmd = producer.build_command(Path("/tmp/a.jar"), Path("/tmp/out/facts.jsonl"))
        assert cmd == [
            "opal-callgraph",
            "--input",
            "/tmp/a.jar",
            "--output",
            "/tmp/out/facts.jsonl",
        ]

    def test_produce(self, producer: ExternalEngineProducer) -> None:
        engine = fake_engine(facts_text())
        with patch("callgraph_core.analyzers.engine.run_cmd", side_effect=engine):
            cg = producer.produce(COORDINATE, 1574072773)

        assert cg.forge == "mvn"
        assert cg.product == "com.g2forge.alexandria:alexandria"
        assert cg.version == "0.0.9"
        assert cg.generator == "OPAL"
        assert cg.timestamp == 1574072773
        assert cg.graph.size() == 2
        assert str(cg.uri) == "fasten://mvn!com.g2forge.alexandria:alexandria$0.0.9"

    def test_engine_failure(self, producer: ExternalEngineProducer) -> None:
        with patch("callgraph_core.analyzers.engine.run_cmd", side_effect=fake_engine(exit_code=2)):
            with pytest.raises(AnalysisError) as excinfo:
                producer.produce(COORDINATE, -1)
        assert excinfo.value.details["stderr"] == "boom"

    def test_engine_timeout(self, producer: ExternalEngineProducer) -> None:
        with patch(
            "callgraph_core.analyzers.engine.run_cmd",
            side_effect=fake_engine(exit_code=-1, timed_out=True),
        ):
            with pytest.raises(AnalysisError, match="timed out"):
                producer.produce(COORDINATE, -1)

    def test_engine_not_installed(self, producer: ExternalEngineProducer) -> None:
        with patch(
            "callgraph_core.analyzers.engine.run_cmd",
            side_effect=CommandNotFoundError("Command not found: opal-callgraph"),
        ):
            with pytest.raises(AnalysisError, match="Command not found"):
                producer.produce(COORDINATE, -1)

    def test_engine_without_output(self, producer: ExternalEngineProducer) -> None:
        with patch("callgraph_core.analyzers.engine.run_cmd", side_effect=fake_engine()):
            with pytest.raises(AnalysisError, match="without writing facts"):
                producer.produce(COORDINATE, -1)

    def test_missing_artifact(self, producer: ExternalEngineProducer) -> None:
        with pytest.raises(ArtifactNotFoundError):
            producer.produce(MavenCoordinate("g", "a", "1"), -1)

    def test_empty_command(self, repository: Path) -> None:
        with pytest.raises(InvalidConfigError):
            ExternalEngineProducer("WALA", "  ", LocalRepositoryResolver(repository))


class TestCreateProducer:
    """The backend is chosen by configuration."""

    @pytest.mark.parametrize(("name", "expected"), [("OPAL", "OPAL"), ("wala", "WALA")])
    def test_selects_generator(self, repository: Path, name: str, expected: str) -> None:
        settings = Settings(_env_file=None, generator=name, local_repository=str(repository))
        producer = create_producer(settings)
        assert producer.generator == expected

    def test_unknown_generator(self) -> None:
        with pytest.raises(InvalidConfigError, match="generator"):
            create_producer(Settings(_env_file=None, generator="soot"))

    def test_uses_configured_command(self, repository: Path) -> None:
        settings = Settings(
            _env_file=None,
            generator="WALA",
            wala_command="wala --jar {artifact} --facts {output}",
            local_repository=str(repository),
        )
        producer = create_producer(settings)
        assert producer.build_command(Path("a.jar"), Path("f.jsonl")) == [
            "wala",
            "--jar",
            "a.jar",
            "--facts",
            "f.jsonl",
        ]


class TestRunner:
    """Tests for the subprocess runner."""

    def test_captures_exit_code_and_stderr(self, tmp_path: Path) -> None:
        cmd = [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"]
        result = run_cmd(cmd, cwd=tmp_path, logs_path=tmp_path / "logs/run.log")

        assert result.exit_code == 3
        assert result.stderr_tail == "bad"
        assert "Exit code: 3" in (tmp_path / "logs/run.log").read_text()
        with pytest.raises(CommandFailedError) as excinfo:
            result.check(cmd)
        assert excinfo.value.exit_code == 3

    def test_missing_command(self, tmp_path: Path) -> None:
        with pytest.raises(CommandNotFoundError):
            run_cmd(["definitely-not-a-real-engine-binary"], cwd=tmp_path)
