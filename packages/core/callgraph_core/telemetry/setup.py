"""Tracing and metrics providers for call graph generation.

Providers are only created when ``otel_enabled`` is set. SDK and exporter
modules are imported lazily, so a disabled worker loads the API package only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from opentelemetry.metrics import Meter
    from opentelemetry.trace import Tracer

    from callgraph_core.settings import Settings

logger = logging.getLogger(__name__)

_tracer: Tracer | None = None
_meter: Meter | None = None
_initialized = False

METRIC_EXPORT_INTERVAL_MS = 60000


def _sampler(settings: Settings) -> Any:
    from opentelemetry.sdk.trace.sampling import (
        ALWAYS_OFF,
        ALWAYS_ON,
        ParentBasedTraceIdRatio,
        TraceIdRatioBased,
    )

    name = settings.otel_traces_sampler
    if name == "always_off":
        return ALWAYS_OFF
    if name == "traceidratio":
        return TraceIdRatioBased(settings.otel_traces_sampler_arg)
    if name == "parentbased_traceidratio":
        return ParentBasedTraceIdRatio(settings.otel_traces_sampler_arg)
    return ALWAYS_ON


def init_telemetry(service_suffix: str = "", settings: Settings | None = None) -> bool:
    """Install OTLP tracer and meter providers if telemetry is enabled.

    Calling it again after a successful initialization does nothing.

    Args:
        service_suffix: Appended to the configured service name (e.g. "-worker")
        settings: Settings to read; defaults to the cached instance

    Returns:
        True if providers are installed, False if telemetry is disabled
    """
    global _tracer, _meter, _initialized

    if _initialized:
        return True

    if settings is None:
        from callgraph_core.settings import get_settings

        settings = get_settings()

    if not settings.otel_enabled:
        logger.debug("Telemetry disabled")
        return False

    from opentelemetry import metrics, trace
    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import SERVICE_NAME, Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    endpoint = settings.otel_exporter_otlp_endpoint
    service_name = settings.otel_service_name + service_suffix
    resource = Resource.create(
        {SERVICE_NAME: service_name, "callgraph.generator": settings.generator}
    )

    tracer_provider = TracerProvider(resource=resource, sampler=_sampler(settings))
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(tracer_provider)

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))

    _tracer = trace.get_tracer("callgraph")
    _meter = metrics.get_meter("callgraph")
    _initialized = True
    logger.info("Telemetry exporting to %s as %s", endpoint, service_name)
    return True


def shutdown_telemetry() -> None:
    """Flush and shut down the installed providers, if any."""
    global _tracer, _meter, _initialized

    if not _initialized:
        return

    from opentelemetry import metrics, trace

    for provider in (trace.get_tracer_provider(), metrics.get_meter_provider()):
        shutdown = getattr(provider, "shutdown", None)
        if shutdown is not None:
            shutdown()

    _tracer = None
    _meter = None
    _initialized = False
    logger.debug("Telemetry shut down")


def get_tracer(name: str = "callgraph") -> Tracer:
    """Return the installed tracer, or the API default (a no-op when disabled)."""
    from opentelemetry import trace

    return _tracer if _tracer is not None else trace.get_tracer(name)


def get_meter(name: str = "callgraph") -> Meter:
    """Return the installed meter, or the API default (a no-op when disabled)."""
    from opentelemetry import metrics

    return _meter if _meter is not None else metrics.get_meter(name)
