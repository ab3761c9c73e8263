"""OpenTelemetry tracing for filesystem operations.

Every adapter operation runs in a ``bucketfs.<operation>`` span carrying the
bucket and path. Failed operations record the exception and mark the span
as an error, with the error class in ``bucketfs.error``.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Status, StatusCode


SPAN_PREFIX = "bucketfs"
INSTRUMENTATION_NAME = "bucketfs"

_tracer: trace.Tracer | None = None


def setup_tracing(
    service_name: str = "bucketfs",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    exporter: SpanExporter | None = None,
) -> trace.Tracer:
    """
    Install a tracer provider for the host process.

    Args:
        service_name: ``service.name`` resource attribute
        otlp_endpoint: OTLP gRPC collector endpoint (e.g. "http://localhost:4317")
        console_export: Also print finished spans to stdout
        exporter: Extra exporter, fed synchronously (e.g. an in-memory
            exporter in tests)

    Returns:
        The bucketfs tracer
    """
    global _tracer

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))

    exporters: list[SpanExporter] = []
    if otlp_endpoint:
        exporters.append(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    if console_export:
        exporters.append(ConsoleSpanExporter())
    for span_exporter in exporters:
        provider.add_span_processor(BatchSpanProcessor(span_exporter))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer(INSTRUMENTATION_NAME)
    return _tracer


def get_tracer() -> trace.Tracer:
    """Tracer from setup_tracing, or from the globally installed provider."""
    if _tracer is not None:
        return _tracer
    return trace.get_tracer(INSTRUMENTATION_NAME)


@contextmanager
def operation_span(
    operation: str,
    bucket: str,
    path: str,
    **attributes: str | int | None,
) -> Generator[trace.Span, None, None]:
    """
    Span around one filesystem operation.

    Args:
        operation: Operation name, e.g. "rename"; the span is "bucketfs.rename"
        bucket: Bucket the operation targets
        path: Normalized path (or key prefix for listing pages)
        **attributes: Extra attributes, prefixed with "bucketfs."; None values
            are skipped

    Yields:
        The active span
    """
    span_attributes: dict[str, str | int] = {
        f"{SPAN_PREFIX}.bucket": bucket,
        f"{SPAN_PREFIX}.path": path,
    }
    for key, value in attributes.items():
        if value is not None:
            span_attributes[f"{SPAN_PREFIX}.{key}"] = value

    with get_tracer().start_as_current_span(
        f"{SPAN_PREFIX}.{operation}",
        attributes=span_attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_attribute(f"{SPAN_PREFIX}.error", type(exc).__name__)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
