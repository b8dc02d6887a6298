"""OpenTelemetry initialization and utilities.

Telemetry is disabled by default. When OTEL_ENABLED=false, no SDK imports
occur and the API's no-op tracer and meter are used.

Usage:
    from callgraph_core.telemetry import init_telemetry, shutdown_telemetry

    telemetry_enabled = init_telemetry(service_suffix="-worker")
    ...
    shutdown_telemetry()
"""

from callgraph_core.telemetry.setup import (
    get_meter,
    get_tracer,
    init_telemetry,
    shutdown_telemetry,
)
from callgraph_core.telemetry.spans import trace_call_graph_operation

__all__ = [
    "init_telemetry",
    "shutdown_telemetry",
    "get_tracer",
    "get_meter",
    "trace_call_graph_operation",
]
