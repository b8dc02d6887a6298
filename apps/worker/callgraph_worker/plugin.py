"""Analyzer plugin: turns consumed coordinate records into published call graphs.

Records are processed one at a time. A failure is recorded in
``plugin_error`` and the record is not retried, so each record is published
at most once.
"""

from __future__ import annotations

import json
import logging
import traceback
from typing import Any

from callgraph_core import UNKNOWN_TIMESTAMP, FormatError, RevisionCallGraph
from callgraph_core.analyzers import CallGraphProducer, MavenCoordinate
from callgraph_core.settings import Settings, get_settings
from callgraph_core.telemetry import get_meter, trace_call_graph_operation

from callgraph_worker.publisher import Publisher

logger = logging.getLogger(__name__)


class CallGraphPlugin:
    """Generates call graphs for consumed Maven coordinates and publishes them."""

    def __init__(
        self,
        producer: CallGraphProducer,
        publisher: Publisher,
        settings: Settings | None = None,
    ) -> None:
        self._producer = producer
        self._publisher = publisher
        self._settings = settings or get_settings()
        self._plugin_error = ""
        self._processed_record = False

        meter = get_meter(__name__)
        self._generated_counter = meter.create_counter(
            "callgraph.generated", description="Call graphs generated"
        )
        self._empty_counter = meter.create_counter(
            "callgraph.empty", description="Call graphs without edges (not published)"
        )
        self._failed_counter = meter.create_counter(
            "callgraph.failed", description="Records that could not be processed"
        )

    def name(self) -> str:
        return f"{type(self).__module__}.{type(self).__qualname__}"

    def description(self) -> str:
        return f"Generates call graphs for Java packages using {self._producer.generator}"

    def consumer_topics(self) -> list[str]:
        return [self._settings.consume_topic]

    def producer_topic(self) -> str:
        return self._settings.produce_topic or f"{self._producer.generator.lower()}_callgraphs"

    @property
    def plugin_error(self) -> str:
        return self._plugin_error

    def record_process_successful(self) -> bool:
        return self._processed_record

    def consume(self, record_value: str, publish: bool = True) -> RevisionCallGraph | None:
        """Process one consumed record.

        Args:
            record_value: JSON record such as ``{"groupId": "com.g2forge.alexandria",
                "artifactId": "alexandria", "version": "0.0.9", "date": "1574072773"}``
            publish: If False, the call graph is generated but not published

        Returns:
            The generated call graph (possibly empty), or None on failure
        """
        self._plugin_error = ""
        self._processed_record = False
        cg = self._consume(record_value, publish)
        if not self._plugin_error:
            self._processed_record = True
        return cg

    def _consume(self, record_value: str, publish: bool) -> RevisionCallGraph | None:
        try:
            payload = _parse_record(record_value)
            coordinate = self.get_maven_coordinate(payload)

            logger.info("Generating call graph for %s", coordinate)
            cg = self.generate_call_graph(coordinate, payload)

            if cg.is_call_graph_empty():
                logger.warning("Empty call graph for %s", coordinate)
                self._empty_counter.add(1, {"generator": self._producer.generator})
                return cg

            logger.info("Call graph successfully generated for %s!", coordinate)
            self._generated_counter.add(1, {"generator": self._producer.generator})

            if self._settings.canonicalize_internal_calls:
                cg.sort_internal_calls()
            if publish:
                self.send_to_publisher(cg)
            return cg

        except Exception as e:
            self.set_plugin_error(e)
            self._failed_counter.add(1, {"error.type": type(e).__name__})
            logger.exception("Failed to process record: %s", record_value)
            return None

    def get_maven_coordinate(self, payload: dict[str, Any]) -> MavenCoordinate:
        return MavenCoordinate.from_record(payload)

    def generate_call_graph(
        self, coordinate: MavenCoordinate, payload: dict[str, Any]
    ) -> RevisionCallGraph:
        with trace_call_graph_operation(
            "generate", coordinate.coordinate, self._producer.generator
        ) as span:
            cg = self._producer.produce(coordinate, _release_timestamp(payload))
            span.set_attribute("callgraph.internal_calls", len(cg.graph.internal_calls))
            span.set_attribute("callgraph.external_calls", len(cg.graph.external_calls))
            return cg

    def send_to_publisher(self, cg: RevisionCallGraph) -> None:
        """Publish the encoded call graph keyed by its revision identifier."""
        topic = self.producer_topic()
        key = str(cg.uri)
        logger.debug("Writing call graph for %s to %s", key, topic)

        def _on_complete(error: Exception | None) -> None:
            if error is None:
                logger.debug("Sent: %s to %s", key, topic)
            else:
                self.set_plugin_error(error)
                logger.error("Failed to publish %s: %s", key, error)

        with trace_call_graph_operation("publish", key, self._producer.generator):
            self._publisher.send(topic, key, cg.to_json(), on_complete=_on_complete)

    def set_plugin_error(self, error: BaseException) -> None:
        self._plugin_error = json.dumps(
            {
                "plugin": type(self).__name__,
                "msg": str(error),
                "trace": traceback.format_exception(type(error), error, error.__traceback__),
                "type": type(error).__name__,
            }
        )


def _parse_record(record_value: str) -> dict[str, Any]:
    try:
        payload = json.loads(record_value)
    except json.JSONDecodeError as e:
        raise FormatError("Record is not valid JSON", {"error": str(e)}) from e
    if not isinstance(payload, dict):
        raise FormatError("Record must be a JSON object", {"record": record_value})
    return payload


def _release_timestamp(payload: dict[str, Any]) -> int:
    """Read the optional ``date`` field (seconds since epoch)."""
    value = payload.get("date")
    if value is None:
        return UNKNOWN_TIMESTAMP
    try:
        return int(str(value))
    except ValueError as e:
        raise FormatError("Record date must be an integer", {"date": repr(value)}) from e
