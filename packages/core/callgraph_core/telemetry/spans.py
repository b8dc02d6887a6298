"""Span helpers for call graph generation and publication."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from callgraph_core.telemetry.setup import get_tracer


@contextmanager
def trace_call_graph_operation(
    operation: str,
    coordinate: str | None = None,
    generator: str | None = None,
) -> Iterator[trace.Span]:
    """Context manager for tracing one step of the call graph pipeline.

    Usage:
        with trace_call_graph_operation("generate", "g:a:1.0", "OPAL") as span:
            cg = producer.produce(coordinate, timestamp)
            span.set_attribute("callgraph.size", cg.graph.size())

    Args:
        operation: Pipeline step (e.g. "generate", "publish")
        coordinate: Artifact coordinate being processed
        generator: Name of the call graph generator

    Yields:
        The active span for adding additional attributes
    """
    attrs: dict[str, Any] = {"callgraph.operation": operation}
    if coordinate:
        attrs["callgraph.coordinate"] = coordinate
    if generator:
        attrs["callgraph.generator"] = generator

    with get_tracer(__name__).start_as_current_span(
        f"callgraph.{operation}",
        attributes=attrs,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
