"""Tests for the worker entry point."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from callgraph_core import (
    AnalysisError,
    CallGraphAssembler,
    Identifier,
    InvalidConfigError,
    RevisionCallGraph,
)
from callgraph_core.analyzers import CallGraphProducer, MavenCoordinate

from callgraph_worker.main import build_parser, main


class StubProducer(CallGraphProducer):
    """Produces a one-call graph, or fails for the artifact named ``broken``."""

    def __init__(self, generator: str = "OPAL") -> None:
        self._generator = generator

    @property
    def generator(self) -> str:
        return self._generator

    def produce(self, coordinate: MavenCoordinate, timestamp: int) -> RevisionCallGraph:
        if coordinate.artifact_id == "broken":
            raise AnalysisError("Could not find JAR", {"coordinate": str(coordinate)})
        asm = CallGraphAssembler()
        asm.add_type(Identifier("/p/A"), "A.java")
        asm.add_method(Identifier("/p/A"), Identifier("/p/A.foo()"))
        asm.add_call(Identifier("/p/A.foo()"), Identifier("/p/A.foo()"), "invokestatic")
        return asm.build(
            forge="mvn",
            product=coordinate.product,
            version=coordinate.version,
            generator=self._generator,
            timestamp=timestamp,
        )


def record(artifact_id: str) -> str:
    return json.dumps({"groupId": "org.example", "artifactId": artifact_id, "version": "1.0"})


@pytest.fixture
def run_worker(tmp_path: Path):
    """Run main() over the given input lines and return (exit code, output records)."""

    def _run(lines: list[str], *extra: str) -> tuple[int, list[dict]]:
        input_path = tmp_path / "records.jsonl"
        output_path = tmp_path / "callgraphs.jsonl"
        input_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

        def _create(settings, resolver=None):
            return StubProducer(settings.generator)

        with patch("callgraph_worker.main.create_producer", side_effect=_create):
            code = main(["--input", str(input_path), "--output", str(output_path), *extra])

        if not output_path.exists():
            return code, []
        published = output_path.read_text(encoding="utf-8").splitlines()
        return code, [json.loads(line) for line in published]

    return _run


class TestMain:
    def test_all_records_published(self, run_worker) -> None:
        code, published = run_worker([record("alpha"), "", record("beta")])

        assert code == 0
        assert [p["key"] for p in published] == [
            "fasten://mvn!org.example:alpha$1.0",
            "fasten://mvn!org.example:beta$1.0",
        ]
        assert {p["topic"] for p in published} == {"opal_callgraphs"}

        cg = RevisionCallGraph.from_json(published[0]["value"])
        assert cg.graph.internal_calls == [(0, 0)]

    def test_failed_record_sets_exit_code(self, run_worker) -> None:
        code, published = run_worker([record("alpha"), record("broken")])

        assert code == 1
        assert len(published) == 1

    def test_generator_option(self, run_worker) -> None:
        code, published = run_worker([record("alpha")], "--generator", "WALA")

        assert code == 0
        assert published[0]["topic"] == "wala_callgraphs"
        assert json.loads(published[0]["value"])["generator"] == "WALA"

    def test_telemetry_shut_down_when_producer_setup_fails(self, tmp_path: Path) -> None:
        error = InvalidConfigError("generator", "SOOT", "expected one of OPAL, WALA")
        output_path = tmp_path / "callgraphs.jsonl"

        with patch("callgraph_worker.main.create_producer", side_effect=error), patch(
            "callgraph_worker.main.shutdown_telemetry"
        ) as shutdown:
            with pytest.raises(InvalidConfigError):
                main(["--input", str(tmp_path / "records.jsonl"), "--output", str(output_path)])

        shutdown.assert_called_once()


class TestParser:
    def test_output_is_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_unknown_generator_rejected(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--output", "out.jsonl", "--generator", "SOOT"])
